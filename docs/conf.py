"""Sphinx build settings for the identity admin API reference."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from identity_admin.config import APP_NAME, VERSION  # noqa: E402

project = APP_NAME
author = "Identity Admin maintainers"
release = VERSION
version = ".".join(VERSION.split(".")[:2])

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.intersphinx",
    "sphinx.ext.napoleon",
    "sphinx_autodoc_typehints",
]

# Drivers and the cache client are only imported, never exercised, while rendering.
autodoc_mock_imports = ["psycopg", "psycopg_pool", "redis"]
autodoc_member_order = "bysource"
autodoc_default_options = {"members": True, "undoc-members": False}
typehints_fully_qualified = False
always_document_param_types = False

# Docstrings in the package use the numpy layout.
napoleon_google_docstring = False
napoleon_numpy_docstring = True
napoleon_use_rtype = False

intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
    "psycopg": ("https://www.psycopg.org/psycopg3/docs/", None),
    "pyjwt": ("https://pyjwt.readthedocs.io/en/stable/", None),
}

exclude_patterns = ["_build"]
html_theme = "alabaster"
html_title = f"{APP_NAME} {release}"
