"""Configuration and runtime constants."""

import os
from dotenv import load_dotenv

load_dotenv()

# API Keys
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL")  # any OpenAI-compatible endpoint, e.g. Gemini

# Model Configuration
MODEL_NAME = os.getenv("MODEL_NAME", "gemini-2.5-flash")
TEMPERATURE = float(os.getenv("TEMPERATURE", "0.7"))
GENERATION_TIMEOUT_SECONDS = float(os.getenv("GENERATION_TIMEOUT_SECONDS", "60"))

# Pipeline Configuration
BATCH_SIZE = int(os.getenv("BATCH_SIZE", "8"))
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "10"))
RATE_LIMIT_WINDOW_SECONDS = float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

# Server Configuration
SERVER_HOST = os.getenv("SERVER_HOST", "127.0.0.1")
SERVER_PORT = int(os.getenv("SERVER_PORT", "8080"))
ENDPOINT_PATH = os.getenv("ENDPOINT_PATH", "/conjugator/api/process-csv")

# Table Format
VERB_MARKER = "to "
HEADER_MARKERS = ("russian_text", "english_translation")

# Testing Configuration
LIVE_TESTING = os.getenv("VOCAB_CONJUGATOR_LIVE", "0") == "1"
