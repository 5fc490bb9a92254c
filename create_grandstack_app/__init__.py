"""create-grandstack-app: scaffold a new GRANDstack application.

Downloads the latest GRANDstack starter release, keeps the chosen frontend
template, writes the API connection settings and optionally initialises git
and installs dependencies.

Key modules:
    options   - Command-line parsing and interactive option resolution
    tasks     - Ordered scaffolding steps and ``create_app``
    pipeline  - Generic fail-fast step runner
    reporter  - Rich console output
    cli       - ``create-grandstack-app`` entry point
"""

__version__ = "0.1.0"
