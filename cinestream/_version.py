from importlib import metadata


def get_version() -> str:
    """Installed distribution version, or a local marker for source checkouts."""
    try:
        return metadata.version("cinestream")
    except metadata.PackageNotFoundError:
        return "0.0.0+local"


__version__ = get_version()
