"""chat_relay.config.defaults
==========================

Central place for small, stable default values used across the chat_relay
package. These defaults can be overridden via environment variables or
external configuration, but provide sensible fallbacks for local development
and tests.

Module Purpose
--------------
- Provide a single import location for conservative default constants (no I/O).
- Keep the core free of magic literals (endpoints, model ids, timeouts).

This module intentionally avoids importing from other chat_relay packages to
prevent circular dependencies. Only plain constants should live here.
"""

from __future__ import annotations

# ---- Provider defaults ----
OPENAI_DEFAULT_MODEL = "gpt-4o-mini"
OPENAI_DEFAULT_ENDPOINT = "https://api.openai.com/v1/chat/completions"

DEEPSEEK_DEFAULT_MODEL = "deepseek-chat"
DEEPSEEK_DEFAULT_ENDPOINT = "https://api.deepseek.com/v1/chat/completions"

OPENROUTER_DEFAULT_MODEL = "openrouter/auto"
OPENROUTER_DEFAULT_ENDPOINT = "https://openrouter.ai/api/v1/chat/completions"

XAI_DEFAULT_MODEL = "grok-4"
XAI_DEFAULT_ENDPOINT = "https://api.x.ai/v1/chat/completions"

ANTHROPIC_DEFAULT_MODEL = "claude-3-5-sonnet-latest"
ANTHROPIC_DEFAULT_ENDPOINT = "https://api.anthropic.com/v1/messages"
ANTHROPIC_API_VERSION = "2023-06-01"
ANTHROPIC_DEFAULT_MAX_TOKENS = 4096

GEMINI_DEFAULT_MODEL = "gemini-2.5-flash"
# ``{model}`` and ``{method}`` are substituted per request.
GEMINI_DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:{method}"

OLLAMA_DEFAULT_MODEL = "llama3.2"
OLLAMA_DEFAULT_ENDPOINT = "http://localhost:11434/api/chat"


# ---- Transport defaults ----
# Hard wall-clock cap for one request, enforced by the transport.
REQUEST_TIMEOUT_SECONDS = 300.0
# Connection-establishment cap, enforced by the transport.
CONNECT_TIMEOUT_SECONDS = 30.0
# Delay between SIGTERM and SIGKILL when cancelling a request.
CANCEL_GRACE_SECONDS = 2.0
# Executable looked up on PATH by the curl transport.
CURL_EXECUTABLE = "curl"
# Prefix for staged request bodies in the temp directory.
STAGING_PREFIX = "chat-relay-"


# ---- CLI defaults ----
CLI_DEFAULT_PROVIDER = "openai"
CLI_DEFAULT_TRANSPORT = "curl"


__all__ = [
    "OPENAI_DEFAULT_MODEL",
    "OPENAI_DEFAULT_ENDPOINT",
    "DEEPSEEK_DEFAULT_MODEL",
    "DEEPSEEK_DEFAULT_ENDPOINT",
    "OPENROUTER_DEFAULT_MODEL",
    "OPENROUTER_DEFAULT_ENDPOINT",
    "XAI_DEFAULT_MODEL",
    "XAI_DEFAULT_ENDPOINT",
    "ANTHROPIC_DEFAULT_MODEL",
    "ANTHROPIC_DEFAULT_ENDPOINT",
    "ANTHROPIC_API_VERSION",
    "ANTHROPIC_DEFAULT_MAX_TOKENS",
    "GEMINI_DEFAULT_MODEL",
    "GEMINI_DEFAULT_ENDPOINT",
    "OLLAMA_DEFAULT_MODEL",
    "OLLAMA_DEFAULT_ENDPOINT",
    "REQUEST_TIMEOUT_SECONDS",
    "CONNECT_TIMEOUT_SECONDS",
    "CANCEL_GRACE_SECONDS",
    "CURL_EXECUTABLE",
    "STAGING_PREFIX",
    "CLI_DEFAULT_PROVIDER",
    "CLI_DEFAULT_TRANSPORT",
]
