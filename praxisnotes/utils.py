"""
Utility functions for file I/O and LLM initialization
"""
import os
import json
import logging
from typing import Any
from dotenv import load_dotenv

from langchain_openai import ChatOpenAI
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_anthropic import ChatAnthropic
from langchain_ollama import ChatOllama

from .config import *

# Ensure .env is loaded when this module is imported
load_dotenv()

logger = logging.getLogger(__name__)


# --- FILE I/O ---
def load_json(filepath: str, default) -> Any:
    if os.path.exists(filepath):
        with open(filepath, 'r', encoding='utf-8') as f:
            return json.load(f)
    return default


def save_json(filepath: str, data):
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2)


def save_report_file(content: str, filepath: str) -> str:
    """Save report markdown to specified path."""
    os.makedirs(os.path.dirname(filepath) if os.path.dirname(filepath) else ".", exist_ok=True)
    with open(filepath, 'w', encoding='utf-8') as f:
        f.write(content)
    logger.info(f"Report written to {filepath}")
    return filepath


# --- LLM INITIALIZATION ---
# Display name -> (API key variable, chat model class, keyword for the key)
HOSTED_PROVIDERS = {
    "GPT-4o": ("OPENAI_API_KEY", ChatOpenAI, "api_key"),
    "Gemini 2.5 Pro": ("GOOGLE_API_KEY", ChatGoogleGenerativeAI, "google_api_key"),
    "Claude 3 Opus": ("ANTHROPIC_API_KEY", ChatAnthropic, "api_key"),
    "Claude 3.5 Sonnet": ("ANTHROPIC_API_KEY", ChatAnthropic, "api_key"),
}


def get_text_llm(model_name: str):
    """
    Initialize a streaming chat model for report writing.

    Free models run on the local Ollama server. Hosted models need their
    provider's API key in the environment.
    """
    if model_name not in ALL_MODELS:
        raise ValueError(f"Unknown model '{model_name}'. Choose one of: {', '.join(ALL_MODELS)}")

    model_id = MODEL_MAP[model_name]

    if model_name in FREE_MODELS:
        return ChatOllama(model=model_id, temperature=REPORT_TEMPERATURE, num_predict=MAX_REPORT_TOKENS)

    env_name, model_class, key_arg = HOSTED_PROVIDERS[model_name]
    api_key = os.getenv(env_name)
    if not api_key:
        raise ValueError(f"{env_name} not found in environment. Please check your .env file.")

    options = {"model": model_id, "temperature": REPORT_TEMPERATURE, key_arg: api_key}
    if model_class is ChatGoogleGenerativeAI:
        options["max_output_tokens"] = MAX_REPORT_TOKENS
    else:
        options["max_tokens"] = MAX_REPORT_TOKENS
    return model_class(**options)
