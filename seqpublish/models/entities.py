"""Core business entities for the publishing pipeline."""

from dataclasses import dataclass, field
from enum import Enum

METADATA_VALUE_SEPARATOR = ';'


class MetadataAttribute(Enum):
    """Metadata attribute names recognised on published objects."""

    # primary (identity)
    RUN = 'run'
    WELL = 'well'
    PLATE_NUMBER = 'plate_number'
    MOVIE_NAME = 'movie_name'
    ANALYSIS_ID = 'analysis_id'
    ID_PRODUCT = 'id_product'
    DATA_LEVEL = 'data_level'
    TARGET = 'target'
    ISOSEQ_PRIMERS = 'isoseq_primers'
    ID_RUN = 'id_run'
    RUNFOLDER = 'runfolder'
    # secondary (provenance)
    SAMPLE = 'sample'
    SAMPLE_ID = 'sample_id'
    SAMPLE_COMMON_NAME = 'sample_common_name'
    STUDY = 'study'
    STUDY_ID = 'study_id'
    LIBRARY_ID = 'library_id'
    LIBRARY_TYPE = 'library_type'
    TAG_INDEX = 'tag_index'
    TAG_SEQUENCE = 'tag_sequence'


def _as_values(value) -> tuple[str, ...]:
    """Normalise a metadata value (or several) to a sorted tuple of strings."""
    if value is None:
        return ()
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(sorted({str(v) for v in value if v is not None}))
    return (str(value),)


@dataclass(frozen=True)
class MetadataRecord:
    """
    Metadata attached to one published object.

    Recognised attributes are keyed by MetadataAttribute, anything else the
    registry provides goes into `extra`. Values are stored as sorted tuples
    so that a record can hold multi-valued attributes (eg. several samples).
    """

    attributes: dict[MetadataAttribute, tuple[str, ...]] = field(
        default_factory=dict
    )
    extra: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def build(
        cls, attributes: dict[MetadataAttribute, object], extra: dict | None = None
    ) -> 'MetadataRecord':
        """Create a record, dropping empty values."""
        attrs = {}
        for attribute, value in attributes.items():
            if values := _as_values(value):
                attrs[attribute] = values

        extras = {}
        for key, value in (extra or {}).items():
            if values := _as_values(value):
                extras[str(key)] = values

        return cls(attrs, extras)

    def get(self, attribute: MetadataAttribute | str) -> str | None:
        """Get the (joined) value for an attribute, or None if unset."""
        if isinstance(attribute, MetadataAttribute):
            values = self.attributes.get(attribute)
        else:
            values = self.extra.get(attribute)
        if not values:
            return None
        return METADATA_VALUE_SEPARATOR.join(values)

    def merge(self, other: 'MetadataRecord') -> 'MetadataRecord':
        """Create a new record holding the union of both records' values."""
        attrs = dict(self.attributes)
        for attribute, values in other.attributes.items():
            merged = set(attrs.get(attribute, ())) | set(values)
            attrs[attribute] = tuple(sorted(merged))

        extras = dict(self.extra)
        for key, values in other.extra.items():
            extras[key] = tuple(sorted(set(extras.get(key, ())) | set(values)))

        return MetadataRecord(attrs, extras)

    def to_object_metadata(self) -> dict[str, str]:
        """Flatten to the string mapping stored on an object."""
        metadata = {
            attribute.value: METADATA_VALUE_SEPARATOR.join(values)
            for attribute, values in self.attributes.items()
        }
        for key, values in self.extra.items():
            # recognised attributes always win over free-form tags
            metadata.setdefault(key, METADATA_VALUE_SEPARATOR.join(values))
        return metadata

    def __len__(self) -> int:
        return len(self.attributes) + len(self.extra)


@dataclass
class Sample:
    """Sample entity."""

    id: str | None
    name: str | None
    common_name: str | None = None


@dataclass
class Study:
    """Study entity."""

    id: str | None
    name: str | None


@dataclass
class Library:
    """Library entity."""

    id: str | None = None
    type: str | None = None


@dataclass
class RegistryRecord:  # pylint: disable=too-many-instance-attributes
    """A run / well / tag association from the run registry."""

    run_name: str
    well_label: str
    sample: Sample
    study: Study
    library: Library = field(default_factory=Library)
    plate_number: int | None = None
    tag_identifier: str | None = None
    tag_sequence: str | None = None
    meta: dict = field(default_factory=dict)

    @classmethod
    def from_gql_dict(cls, data: dict) -> 'RegistryRecord':
        """Create a record from a registry GraphQL response entry."""
        sample = data.get('sample') or {}
        study = data.get('study') or {}
        library = data.get('library') or {}
        return cls(
            run_name=data['runName'],
            well_label=data['wellLabel'],
            plate_number=data.get('plateNumber'),
            tag_identifier=data.get('tagIdentifier'),
            tag_sequence=data.get('tagSequence'),
            sample=Sample(
                id=sample.get('id'),
                name=sample.get('name'),
                common_name=sample.get('commonName'),
            ),
            study=Study(id=study.get('id'), name=study.get('name')),
            library=Library(id=library.get('id'), type=library.get('type')),
            meta=data.get('meta') or {},
        )

    def get_tags(self) -> list[str]:
        """Get the tag sequences for this record."""
        if not self.tag_sequence:
            return []
        return [self.tag_sequence]
