# Services package init
"""
Preach Point Backend — Services Layer
=======================================

What:  Business logic sitting between routes (HTTP) and the upstream LLM.
Why:   Routes handle HTTP; services handle policy and logic and can be
       tested without a server.

Service Inventory:
    - RateLimiter: Per-client fixed window admission control
    - LLMService (abstract): Interface for AI summarization providers
    - OpenAIService: Chat completions with JSON mode (default provider)
    - GeminiService: Google Gemini with JSON response MIME type
    - SermonService: Prompt construction, parse/fallback, augmentation
    - SermonProcessor: Request policy for /process-sermon (CORS, method gate,
      rate limit, config check, validation, error mapping)
"""
