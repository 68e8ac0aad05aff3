"""Metadata derivation for published objects."""

import hashlib
import os
import re

from seqpublish.data_access import RunRegistry
from seqpublish.exceptions import ConfigurationError, NotFoundWarning
from seqpublish.models import (
    AnalysisContext,
    MetadataAttribute,
    MetadataRecord,
    RegistryRecord,
    normalize_well_label,
)

SAMPLE_PREFIX = 'BioSample'
PRODUCT_ID_SEPARATOR = ':'

# eg. flnc.bc1001--bc1001-2.bam -> 2, only the number before the extension
FILE_NUMBER_PATTERN = re.compile(r'-(\d+)\.[^.-]+(\.gz)?$')


def product_id(
    run_name: str,
    well_label: str,
    tags: list[str] | None = None,
    plate_number: int | None = None,
) -> str:
    """
    Generate the stable id of a product, used to correlate a sample's
    output across independent publish runs.

    Args:
        run_name: Instrument run name
        well_label: Well label, padding is removed
        tags: Tag sequences of the product, order is ignored
        plate_number: Plate number, if the instrument has plates

    Returns:
        sha256 hex digest
    """
    components = [run_name, normalize_well_label(well_label)]
    if plate_number is not None:
        components.append(str(plate_number))
    if tags:
        components.append(','.join(sorted(tags)))
    return hashlib.sha256(
        PRODUCT_ID_SEPARATOR.join(components).encode('utf-8')
    ).hexdigest()


def primer_for_file(filename: str, sample_to_primer: dict[str, str]) -> str | None:
    """
    Get the IsoSeq primer for a numbered output file. Files N map to
    BioSample_N in the primers report.
    """
    match = FILE_NUMBER_PATTERN.search(os.path.basename(filename))
    if not match:
        return None
    return sample_to_primer.get(f'{SAMPLE_PREFIX}_{match.group(1)}')


class MetadataResolver:
    """Service resolving registry records and metadata for files."""

    def __init__(self, registry: RunRegistry):
        """
        Args:
            registry: Run registry to look records up in
        """
        self.registry = registry

    def lookup_registry(
        self,
        run_name: str,
        well_name: str,
        tag_id: str | None = None,
        plate_number: int | None = None,
    ) -> list[RegistryRecord]:
        """
        Find the single registry record for a run / well / tag.

        Raises:
            NotFoundWarning: if there is no record, the file can be skipped
            ConfigurationError: if there is more than one record
        """
        records = self.registry.find(run_name, well_name, tag_id, plate_number)
        description = (
            f'run {run_name} well {well_name} tag {tag_id} plate {plate_number}'
        )
        if not records:
            raise NotFoundWarning(f'No registry records found for {description}')
        if len(records) > 1:
            raise ConfigurationError(
                f'Found {len(records)} registry records for {description}, '
                'expected 1'
            )
        return records

    def resolve_context(self, context: AnalysisContext) -> MetadataRecord:
        """Identity metadata for a file published without a registry lookup."""
        return MetadataRecord.build(
            {
                MetadataAttribute.RUN: context.run_name,
                MetadataAttribute.WELL: context.well_label,
                MetadataAttribute.PLATE_NUMBER: context.plate_number,
                MetadataAttribute.MOVIE_NAME: context.movie_name,
                MetadataAttribute.ANALYSIS_ID: context.analysis_id,
            }
        )

    def resolve_primary(
        self,
        context: AnalysisContext,
        data_level: str,
        id_product: str,
        extra_tags: dict[MetadataAttribute, object] | None = None,
        is_target: bool = False,
    ) -> MetadataRecord:
        """
        Primary (identity) metadata for a sequence file.

        Args:
            context: The analysis being published
            data_level: Data processing level, eg. secondary
            id_product: Product id of the file
            extra_tags: Optional further attributes, eg. IsoSeq primers
            is_target: Whether this is the target product

        Returns:
            MetadataRecord
        """
        attributes = {
            MetadataAttribute.ID_PRODUCT: id_product,
            MetadataAttribute.DATA_LEVEL: data_level,
            MetadataAttribute.TARGET: int(is_target),
        }
        attributes.update(extra_tags or {})
        return self.resolve_context(context).merge(MetadataRecord.build(attributes))

    def resolve_secondary(self, records: list[RegistryRecord]) -> MetadataRecord:
        """Secondary (provenance) metadata from registry records."""
        metadata = MetadataRecord()
        for record in records:
            metadata = metadata.merge(
                MetadataRecord.build(
                    {
                        MetadataAttribute.SAMPLE: record.sample.name,
                        MetadataAttribute.SAMPLE_ID: record.sample.id,
                        MetadataAttribute.SAMPLE_COMMON_NAME: record.sample.common_name,
                        MetadataAttribute.STUDY: record.study.name,
                        MetadataAttribute.STUDY_ID: record.study.id,
                        MetadataAttribute.LIBRARY_ID: record.library.id,
                        MetadataAttribute.LIBRARY_TYPE: record.library.type,
                        MetadataAttribute.TAG_SEQUENCE: record.tag_sequence,
                    },
                    extra=record.meta,
                )
            )
        return metadata
