from setuptools import find_packages, setup


setup(
    name="sonos-playlist-switch",
    version="0.1.0",
    description="Spotify playlists as on/off switches, played through a Sonos HTTP API server.",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.6",
        "pydantic-settings>=2.2",
        "httpx>=0.27",
        "tenacity>=8.2",
        "structlog>=24.1",
        "rich>=13.7",
        "typer>=0.12",
        "paho-mqtt>=2.0",
    ],
    extras_require={
        "dev": ["pytest>=8.0", "pytest-asyncio>=0.23", "ruff>=0.6", "mypy>=1.8"],
    },
    entry_points={"console_scripts": ["playlist-switch=playlist_switch.cli:app"]},
)
