"""
Parsers for the sidecar descriptor files written next to PacBio analysis
outputs:

* <movie>.metadata.xml - run, well, movie and barcode details
* isoseq_primers.report.json - the bulk IsoSeq sample to primer table
"""

import json
import logging
import os
import xml.etree.ElementTree as ET

from seqpublish.exceptions import ConfigurationError
from seqpublish.models import AnalysisContext

logger = logging.getLogger(__name__)

METADATA_XML_SUFFIX = '.metadata.xml'
METADATA_SUBDIRECTORY = 'metadata'
PRIMERS_JSON = 'isoseq_primers.report.json'
SAMPLE_FIELD = 'Bio Sample Name'
PRIMER_FIELD = 'Primer Name'
BARCODE_SEPARATOR = '--'


def _local_name(tag: str) -> str:
    """Strip the {namespace} from an element tag."""
    return tag.rsplit('}', 1)[-1]


def _find_all(root: ET.Element, name: str) -> list[ET.Element]:
    """Find all descendants with a local name, whatever their namespace."""
    return [el for el in root.iter() if _local_name(el.tag) == name]


def _find_text(root: ET.Element, *path: str) -> str | None:
    """
    Get the text of the first element found along a path of local names,
    eg. ('RunDetails', 'Name').
    """
    candidates = [root]
    for name in path:
        candidates = [
            child
            for parent in candidates
            for child in parent.iter()
            if child is not parent and _local_name(child.tag) == name
        ]
        if not candidates:
            return None
    text = candidates[0].text
    return text.strip() if text and text.strip() else None


def find_metadata_file(runfolder_path: str) -> str:
    """
    Find the single metadata XML descriptor for an analysis, either in the
    run folder itself or its metadata/ sub-directory.
    """
    found = []
    for directory in (
        runfolder_path,
        os.path.join(runfolder_path, METADATA_SUBDIRECTORY),
    ):
        if not os.path.isdir(directory):
            continue
        found.extend(
            os.path.join(directory, name)
            for name in sorted(os.listdir(directory))
            if name.endswith(METADATA_XML_SUFFIX)
        )

    if len(found) != 1:
        raise ConfigurationError(
            f'Expected 1 metadata file in {runfolder_path}, found {len(found)}: '
            f'{", ".join(found)}'
        )
    return found[0]


def determine_barcode(root: ET.Element) -> str | None:
    """
    Get the adapter barcode, expecting at most one:

        <pbsample:DNABarcodes>
          <pbsample:DNABarcode Name="bcM0001--bcM0001" UniqueId="..."/>
        </pbsample:DNABarcodes>
    """
    if not _find_all(root, 'DNABarcodes'):
        return None

    barcodes = _find_all(root, 'DNABarcode')
    if len(barcodes) > 1:
        raise ConfigurationError('More than 1 adapter barcode found')
    if not barcodes:
        return None

    name = barcodes[0].get('Name') or ''
    return name.split(BARCODE_SEPARATOR)[0] or None


def parse_metadata_xml(
    metadata_file: str, analysis_id: str, single_cell: bool = False
) -> AnalysisContext:
    """
    Read the analysis context from a metadata XML file.

    Args:
        metadata_file: Path to the <movie>.metadata.xml file
        analysis_id: Id of the analysis being published
        single_cell: Whether the analysis is single cell

    Returns:
        AnalysisContext for the analysis
    """
    root = ET.parse(metadata_file).getroot()

    collections = _find_all(root, 'CollectionMetadata')
    movie_name = collections[0].get('Context') if collections else None
    run_name = _find_text(root, 'RunDetails', 'Name')
    well_name = _find_text(root, 'WellSample', 'WellName')
    plate_number = _find_text(root, 'PlateNumber')

    missing = [
        name
        for name, value in (
            ('movie name', movie_name),
            ('run name', run_name),
            ('well name', well_name),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(
            f'Missing {", ".join(missing)} in metadata file {metadata_file}'
        )

    return AnalysisContext(
        run_name=run_name,
        well_name=well_name,
        movie_name=movie_name,
        analysis_id=analysis_id,
        plate_number=int(plate_number) if plate_number else None,
        barcode=determine_barcode(root),
        single_cell=single_cell,
    )


def read_analysis_context(
    runfolder_path: str, analysis_id: str, single_cell: bool = False
) -> AnalysisContext:
    """Find and parse the metadata descriptor for an analysis."""
    metadata_file = find_metadata_file(runfolder_path)
    logger.debug(f'Reading analysis metadata from {metadata_file}')
    return parse_metadata_xml(metadata_file, analysis_id, single_cell)


def parse_primers_report(report: dict) -> dict[str, str]:
    """
    Map sample names to primer names from a primers report. The report holds
    tables of named columns whose values line up positionally.
    """
    names: list[str] = []
    primers: list[str] = []
    for table in report.get('tables') or []:
        for column in table.get('columns') or []:
            if column.get('header') == SAMPLE_FIELD:
                names = column.get('values') or []
            elif column.get('header') == PRIMER_FIELD:
                primers = column.get('values') or []

    return dict(zip(names, primers))


def read_primers(runfolder_path: str) -> dict[str, str]:
    """
    Get the sample to primer table for a bulk IsoSeq analysis. Analyses without
    a primers report have an empty table.
    """
    path = os.path.join(runfolder_path, PRIMERS_JSON)
    if not os.path.isfile(path):
        return {}

    with open(path, encoding='utf-8') as f:
        return parse_primers_report(json.load(f))
