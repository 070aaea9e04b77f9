#!/usr/bin/env python3
"""
Maps AI Assistant Backend - Run Script
Checks the environment, then starts the FastAPI server with uvicorn.
"""

import sys
import subprocess
from pathlib import Path

REQUIRED_KEYS = ["GOOGLE_MAPS_API_KEY"]
LLM_KEYS = {
    "openai": "OPENAI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "groq": "GROQ_API_KEY",
}
PLACEHOLDER_KEY = "your-key-here"

def print_colored(message, color="blue"):
    """Print colored output"""
    colors = {
        "red": "\033[91m",
        "green": "\033[92m",
        "yellow": "\033[93m",
        "blue": "\033[94m",
        "reset": "\033[0m"
    }
    print(f"{colors.get(color, '')}{message}{colors['reset']}")

def check_keys(config) -> list:
    """Warn about API keys the service will need at runtime, as the service loads them."""
    provider = config.LLM_PROVIDER.lower()
    expected = REQUIRED_KEYS + [LLM_KEYS.get(provider, "OPENAI_API_KEY")]
    missing = [key for key in expected if getattr(config, key, "") in ("", PLACEHOLDER_KEY)]
    if missing:
        print_colored(f"⚠️  Missing keys: {', '.join(missing)}", "yellow")
        print("The service will start, but analyses will use their fallback answers")
        print("and map requests will be rejected by Google until the keys are set.")
    return missing

def main():
    print_colored("🚀 Starting Maps AI Assistant Backend...", "blue")

    if not Path("maps_assistant/main.py").exists():
        print_colored("❌ Error: maps_assistant/main.py not found. Please run this script from the backend directory.", "red")
        sys.exit(1)

    # .env may sit next to this script or in the project root
    if not any(env_path.exists() for env_path in (Path(".env"), Path("../.env"))):
        print_colored("⚠️  Warning: no .env file found.", "yellow")
        print("Create one with the following variables:")
        print("  GOOGLE_MAPS_API_KEY=your_google_maps_key")
        print("  LLM_PROVIDER=openai")
        print("  OPENAI_API_KEY=your_api_key_here")
        print("  LOGGER=20")

    print_colored("🔍 Checking dependencies...", "blue")
    try:
        import fastapi  # noqa: F401
        import uvicorn  # noqa: F401
    except ImportError:
        print_colored("❌ Dependencies not installed.", "red")
        print("Install them with: pip install -e ..")
        sys.exit(1)

    from maps_assistant.core.config import Settings
    check_keys(Settings())

    print_colored("✅ All checks passed!", "green")
    print_colored("🌐 Starting Uvicorn server...", "blue")
    print("📍 Backend will be available at: http://localhost:8000")
    print("📍 API Health check: http://localhost:8000/health")
    print("📍 API Documentation: http://localhost:8000/docs")
    print()
    print("Press Ctrl+C to stop the server")
    print()

    try:
        subprocess.run([
            sys.executable, "-m", "uvicorn",
            "maps_assistant.main:app",
            "--reload",
            "--host", "0.0.0.0",
            "--port", "8000"
        ], check=True)
    except KeyboardInterrupt:
        print_colored("\n👋 Backend server stopped.", "yellow")
    except subprocess.CalledProcessError as e:
        print_colored(f"\n❌ Error starting server: {e}", "red")
        sys.exit(1)

if __name__ == "__main__":
    main()
