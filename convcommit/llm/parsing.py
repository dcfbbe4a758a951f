"""Extraction of the commit message from raw backend output.

The system prompt asks every backend to wrap its answer as
<Commit>{message}</Commit>. The first start tag and the first end tag after
it win; nesting and repeated pairs are not validated.
"""

from convcommit.llm.exceptions import TagMissingError

COMMIT_START_TAG = "<Commit>"
COMMIT_END_TAG = "</Commit>"


def parse_commit_message(raw_response: str) -> str:
    """Extract the text between the first <Commit> and </Commit> tags.

    Args:
        raw_response: The aggregated backend output.

    Returns:
        The enclosed message, exactly as the backend wrote it.

    Raises:
        TagMissingError: If either tag is missing.
    """
    start = raw_response.find(COMMIT_START_TAG)
    if start == -1:
        raise TagMissingError(
            f"no {COMMIT_START_TAG} tag found in output",
            raw_response=raw_response,
        )

    begin = start + len(COMMIT_START_TAG)
    end = raw_response.find(COMMIT_END_TAG, begin)
    if end == -1:
        raise TagMissingError(
            f"no {COMMIT_END_TAG} tag found in output",
            raw_response=raw_response,
        )

    return raw_response[begin:end]
