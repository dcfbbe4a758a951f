"""Google Vertex AI (project and region scoped) backend implementation."""

from typing import Optional

from google import genai

from convcommit.config import BackendKind
from convcommit.llm.exceptions import MissingAPIKeyError
from convcommit.llm.google_provider import GoogleProvider


class VertexProvider(GoogleProvider):
    """Gemini served through Vertex AI.

    With a project configured, the client authenticates with Application
    Default Credentials in that project and region. Without one, an API key
    selects Vertex AI express mode.
    """

    kind = BackendKind.VERTEX
    display_name = "Vertex AI"

    def __init__(
        self,
        model: Optional[str] = None,
        host: Optional[str] = None,
        api_key: Optional[str] = None,
        location: Optional[str] = None,
        project: Optional[str] = None,
    ):
        """Initialize the Vertex backend.

        Args:
            model: The model to use. Defaults to gemini-2.0-flash.
            host: API base URL override.
            api_key: API key for express mode.
            location: Vertex AI region (e.g. us-central1).
            project: Google Cloud project ID.
        """
        super().__init__(model=model, host=host, api_key=api_key)
        self.location = location
        self.project = project

    def create_client(self) -> genai.Client:
        """Create the SDK client for Vertex AI."""
        if self.project:
            return genai.Client(
                vertexai=True,
                project=self.project,
                location=self.location,
                http_options=self._http_options(),
            )

        try:
            api_key = self.get_api_key()
        except MissingAPIKeyError as e:
            raise MissingAPIKeyError(
                f"Vertex AI needs either 'project' (with 'location') under 'vertex' "
                f"in .convcommit/llm.config.yaml, or an API key for express mode.\n{e}"
            ) from e

        return genai.Client(vertexai=True, api_key=api_key, http_options=self._http_options())
