from .openai_client import OpenAIClient

DEEPSEEK_BASE_URL = "https://api.deepseek.com/v1"


class DeepSeekClient(OpenAIClient):
    """
    DeepSeek API client returning UnifiedResponse.

    The DeepSeek API is OpenAI-compatible, so this only swaps the endpoint and
    provider label.
    """

    provider_name = "deepseek"

    def __init__(self, api_key: str, model_name: str = "deepseek-chat", **kwargs):
        """
        Initialize the DeepSeek client.

        Args:
            api_key: The DeepSeek API key
            model_name: "deepseek-chat" (general) or "deepseek-reasoner" (reasoning)
            **kwargs: Passed through to OpenAIClient
        """
        kwargs.setdefault("base_url", DEEPSEEK_BASE_URL)
        super().__init__(api_key, model_name=model_name, **kwargs)
