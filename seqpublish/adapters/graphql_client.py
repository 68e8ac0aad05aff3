"""GraphQL client adapter for the run registry API."""

from cpg_utils.cloud import get_google_identity_token
from cpg_utils.config import config_retrieve
from gql import Client, gql
from gql.transport.requests import RequestsHTTPTransport
from graphql import DocumentNode


class GraphQLClient:
    """Adapter for run registry GraphQL operations."""

    QUERY_PACBIO_RUNS = gql(
        """
        query PacBioRuns($runName: String!, $wellLabel: String!, $tagIdentifier: String, $plateNumber: Int) {
            pacbioRuns(runName: $runName, wellLabel: $wellLabel, tagIdentifier: $tagIdentifier, plateNumber: $plateNumber) {
                runName
                wellLabel
                plateNumber
                tagIdentifier
                tagSequence
                sample {
                    id
                    name
                    commonName
                }
                study {
                    id
                    name
                }
                library {
                    id
                    type
                }
                meta
            }
        }
        """
    )

    def __init__(
        self,
        url: str | None = None,
        auth_token: str | None = None,
        client: Client | None = None,
    ):
        """
        Initialize the client. The transport is only created on first use.

        Args:
            url: Registry GraphQL endpoint, defaults to seqpublish.registry_url
            auth_token: Bearer token, defaults to a Google identity token
            client: A preconfigured gql Client
        """
        self.url = url
        self.auth_token = auth_token
        self._client = client

    def _get_client(self) -> Client:
        """Get (or create) the sync gql Client"""
        if self._client:
            return self._client

        url = self.url or config_retrieve(['seqpublish', 'registry_url'])
        token = self.auth_token or get_google_identity_token(target_audience=url)
        transport = RequestsHTTPTransport(
            url=url,
            headers={'Authorization': f'Bearer {token}'},
        )
        self._client = Client(transport=transport, fetch_schema_from_transport=False)
        return self._client

    def query(self, document: DocumentNode, variables: dict | None = None) -> dict:
        """Execute a query against the registry"""
        return self._get_client().execute(document, variable_values=variables or {})

    def get_pacbio_runs(
        self,
        run_name: str,
        well_label: str,
        tag_identifier: str | None = None,
        plate_number: int | None = None,
    ) -> list[dict]:
        """
        Fetch the registry entries for a run / well / tag.

        Args:
            run_name: Instrument run name
            well_label: Well label (without padding)
            tag_identifier: Barcode / tag identifier, None for untagged wells
            plate_number: Plate number for multi-plate instruments

        Returns:
            Raw GraphQL response entries
        """
        response = self.query(
            self.QUERY_PACBIO_RUNS,
            {
                'runName': run_name,
                'wellLabel': well_label,
                'tagIdentifier': tag_identifier,
                'plateNumber': plate_number,
            },
        )
        return response.get('pacbioRuns') or []
