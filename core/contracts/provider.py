from typing import AsyncIterator, Protocol


class CompletionStreamer(Protocol):
    """A protocol for LLM clients that stream a completion."""

    def stream(self, prompt: str) -> AsyncIterator[str]:
        """
        Streams the LLM's answer to a prompt.

        Args:
            prompt: The prompt to send to the LLM.

        Returns:
            An async iterator of text fragments, in arrival order.
        """
        ...
