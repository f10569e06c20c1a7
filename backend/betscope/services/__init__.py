"""External service adapters: Kalshi market data and LLM text/image generation."""
