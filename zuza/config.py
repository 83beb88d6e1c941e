"""
Zuza Configuration

We read configuration from 2 sources, in order of precedence (higher is more priority)
- Environment variables
- A .env file, either in the current working directory or in a location specified
  by the ZUZA_ENV_FILE environment variable
"""

import functools
from pathlib import Path
from typing import Annotated

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "zuza_"


class Settings(BaseSettings):
    env_file: Annotated[
        Path,
        Field(
            description="Location of a .env file (if used) relative to working directory",
        ),
    ] = Path(".env")

    datastore: Annotated[
        Path,
        Field(
            description="Root directory of the content store. Uploaded files are stored here; it must already exist",
        ),
    ] = Path("datastore")

    port: Annotated[int, Field(description="Port the server listens on")] = 3000

    max_files: Annotated[
        int,
        Field(
            description="Number of files to return per dashboard/history request (a soft limit, whole days are returned)",
            gt=0,
        ),
    ] = 150

    file_size_limit: Annotated[
        int,
        Field(
            description="Maximum size of a single uploaded file in bytes",
            gt=0,
        ),
    ] = 512 * 1024 * 1024

    scan_concurrency: Annotated[
        int,
        Field(
            description="Maximum number of directories scanned concurrently",
            gt=0,
        ),
    ] = 64

    chunk_size: Annotated[int, Field(description="Chunk size in bytes for streaming downloads", gt=0)] = 64 * 1024

    tokens: Annotated[
        dict[str, str],
        Field(
            description="Login tokens, as a JSON object mapping token to owner id",
        ),
    ] = {}

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)


@functools.lru_cache()
def get_settings() -> Settings:
    temp = Settings()
    load_dotenv(temp.env_file, override=False)
    return Settings()


def validate_settings():
    settings = get_settings()
    if not settings.datastore.is_dir():
        return f"The datastore {settings.datastore} does not exist. Create it or set {ENV_PREFIX.upper()}DATASTORE."
    if not settings.tokens:
        return f"No tokens are configured in {ENV_PREFIX.upper()}TOKENS, nobody will be able to log in."


if __name__ == "__main__":
    # Echo the settings
    for k, v in get_settings().model_dump().items():
        print(f"{ENV_PREFIX.upper()}{k.upper()}={v}")
