# menu_import/scripts/setup.py
"""Setup script to initialize the application."""

from pathlib import Path

from menu_import.config import get_settings

ENV_TEMPLATE = """# Model endpoint (OpenAI-compatible)
OPENROUTER_API_KEY=your_key_here
DEFAULT_MODEL_NAME=nvidia/nemotron-3-nano-30b-a3b:free
MODEL_SUPPORTS_STRUCTURED_OUTPUT=False

# Database
DATABASE_URL=sqlite:///./menu_import.db

# Processing
CHUNK_CONCURRENCY=1
MAX_FILE_SIZE_MB=10

# Debug (writes extraction session logs)
DEBUG=True
"""


def create_directories():
    """Create storage directories."""
    settings = get_settings()

    directories = [
        settings.STORAGE_DIR,
        settings.UPLOADS_DIR,
        settings.OUTPUTS_DIR,
    ]

    for directory in directories:
        directory.mkdir(parents=True, exist_ok=True)
        print(f"✓ Created: {directory}")


def check_env_file(env_path: Path = Path(".env")) -> bool:
    """Check if .env file exists, writing a template when it does not."""
    if not env_path.exists():
        print("❌ .env file not found!")
        print("Creating template .env file...")
        env_path.write_text(ENV_TEMPLATE)
        print("✓ Created .env template. Please fill in your API keys.")
        return False

    print("✓ .env file configured")
    return True


def main():
    from menu_import.database import init_db

    print("=" * 50)
    print("Menu Import API - Setup")
    print("=" * 50)

    env_ok = check_env_file()
    create_directories()
    init_db()
    print("✓ Database tables created")

    print("\n" + "=" * 50)
    if env_ok:
        print("✓ Setup complete! Ready to run.")
        print("Start server: uvicorn menu_import.main:app --reload")
    else:
        print("⚠️  Setup incomplete. Please configure .env file.")
    print("=" * 50)


if __name__ == "__main__":
    main()
