"""Repository for run registry data access."""

from abc import ABC, abstractmethod

from seqpublish.adapters import GraphQLClient
from seqpublish.models import RegistryRecord, normalize_well_label


class RunRegistry(ABC):
    """Lookup of authoritative run / sample / tag associations."""

    @abstractmethod
    def find(
        self,
        run_name: str,
        well_name: str,
        tag_id: str | None = None,
        plate_number: int | None = None,
    ) -> list[RegistryRecord]:
        """
        Find registry records for a run, well and (optional) tag.

        Args:
            run_name: Instrument run name
            well_name: Well name, padded or not
            tag_id: Barcode / tag identifier
            plate_number: Plate number

        Returns:
            Matching records, possibly none
        """


class RegistryDataAccess(RunRegistry):
    """Layer for accessing the run registry over GraphQL."""

    def __init__(self, graphql_client: GraphQLClient | None = None):
        """
        Initialize the data access layer.

        Args:
            graphql_client: GraphQL client adapter
        """
        self.graphql_client = graphql_client or GraphQLClient()

    def find(
        self,
        run_name: str,
        well_name: str,
        tag_id: str | None = None,
        plate_number: int | None = None,
    ) -> list[RegistryRecord]:
        raw_records = self.graphql_client.get_pacbio_runs(
            run_name,
            normalize_well_label(well_name),
            tag_identifier=tag_id,
            plate_number=plate_number,
        )
        return [RegistryRecord.from_gql_dict(record) for record in raw_records]
