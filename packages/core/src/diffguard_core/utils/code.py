from __future__ import annotations

ALLOWED_EXTENSIONS = {
    # Web / JavaScript
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".vue",
    ".svelte",
    ".html",
    ".htm",
    ".css",
    ".scss",
    ".sass",
    ".less",
    # Data / config
    ".json",
    ".yaml",
    ".yml",
    ".toml",
    ".graphql",
    ".gql",
    ".proto",
    ".sql",
    ".tf",
    ".hcl",
    # Languages
    ".py",
    ".pyi",
    ".go",
    ".rs",
    ".c",
    ".h",
    ".cpp",
    ".hpp",
    ".cc",
    ".hh",
    ".cxx",
    ".java",
    ".kt",
    ".kts",
    ".cs",
    ".rb",
    ".php",
    ".swift",
    ".dart",
    ".ex",
    ".exs",
    ".erl",
    ".scala",
    ".lua",
    # Shell
    ".sh",
    ".bash",
    ".zsh",
    # Docs
    ".md",
    ".mdx",
}

# Matched case-insensitively against the basename.
BLOCKED_FILE_PATTERNS = (
    # Environment files
    ".env",
    ".env.*",
    "*.env",
    # Keys and certificates
    "*.pem",
    "*.key",
    "*.cert",
    "*.crt",
    "*.p12",
    "*.pfx",
    "*.jks",
    "*.keystore",
    "id_rsa",
    "id_rsa.pub",
    "id_ed25519",
    "id_ed25519.pub",
    "id_dsa",
    "id_ecdsa",
    "*.pub",
    # Lockfiles
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "composer.lock",
    "Gemfile.lock",
    "Pipfile.lock",
    "poetry.lock",
    "Cargo.lock",
    "go.sum",
    # Generated assets
    "*.min.js",
    "*.min.css",
    "*.map",
    "*.chunk.js",
    "*.bundle.js",
    # Credential files
    ".npmrc",
    ".pypirc",
    ".netrc",
    ".htpasswd",
    "credentials.json",
    "service-account*.json",
    "firebase-adminsdk*.json",
    "*.tfstate",
    "*.tfstate.backup",
    "terraform.tfvars",
    # Databases and backups
    "*.sqlite",
    "*.sqlite3",
    "*.db",
    "*.bak",
    # OS / editor junk
    ".DS_Store",
    "Thumbs.db",
    "*.swp",
    "*.swo",
)

ALWAYS_IGNORED_DIRS = (
    ".git",
    "node_modules",
    "dist",
    "build",
    "coverage",
    "__pycache__",
    ".venv",
    "venv",
    "vendor",
    ".next",
    ".diffguard-cache",
)


def file_extension(file_name: str) -> str:
    """Return the lowercase extension including the dot, or "" when there is none."""
    base = file_name.rsplit("/", 1)[-1]
    if "." not in base.lstrip("."):
        return ""
    return "." + base.rsplit(".", 1)[-1].lower()


def is_code_file(file_name: str, extra_extensions: tuple[str, ...] | list[str] = ()) -> bool:
    allowed = ALLOWED_EXTENSIONS | {e.lower() if e.startswith(".") else "." + e.lower() for e in extra_extensions}
    return file_extension(file_name) in allowed
