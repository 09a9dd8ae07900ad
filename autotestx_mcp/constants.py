"""
Shared constants used across the project.
"""

from typing import Final

# Command execution
DEFAULT_COMMAND_TIMEOUT_MS: Final[int] = 5_000
DEFAULT_TEST_TIMEOUT_MS: Final[int] = 120_000
DEFAULT_INSTALL_TIMEOUT_MS: Final[int] = 120_000
DEFAULT_SESSION_TIMEOUT_MS: Final[int] = 900_000

# Repair loop
DEFAULT_MAX_ITERATIONS: Final[int] = 3
DEFAULT_TEST_COMMAND: Final[str] = "npm test"
DEFAULT_PACKAGE_MANAGER: Final[str] = "npm install"

# Oracle configuration
DEFAULT_PROVIDER: Final[str] = "openai"
DEFAULT_AI_MODEL: Final[str] = "gpt-4o-mini"
DEFAULT_GOOGLE_MODEL: Final[str] = "gemini-2.0-flash"
AI_TEMPERATURE: Final[float] = 0.2
AI_MAX_TOKENS: Final[int] = 4000

# Fault localization
FALLBACK_TEST_FILE_LIMIT: Final[int] = 3
SOURCE_EXTENSIONS: Final[tuple[str, ...]] = (
    ".tsx", ".ts", ".jsx", ".js", ".mjs", ".cjs", ".py",
)
JS_IMPORT_EXTENSIONS: Final[tuple[str, ...]] = (".js", ".ts", ".jsx", ".tsx")
THIRD_PARTY_DIRS: Final[frozenset[str]] = frozenset({
    "node_modules", "site-packages", "dist-packages",
})

# Python manifests / pytest configuration that imply a pytest project
PYTHON_PROJECT_FILES: Final[frozenset[str]] = frozenset({
    "requirements.txt", "setup.py", "setup.cfg", "Pipfile",
    "pyproject.toml", "pytest.ini", "conftest.py",
})

# Workspace
LOCK_FILE_NAME: Final[str] = ".autotestx.lock"
DEFAULT_IGNORE_PATTERNS: Final[tuple[str, ...]] = (
    ".git", "node_modules", ".vscode", ".idea", "dist", "lib", "build",
    "coverage", "__pycache__", ".venv", "venv", ".pytest_cache",
    "*.log", "*.logs", "*.md", LOCK_FILE_NAME,
)
