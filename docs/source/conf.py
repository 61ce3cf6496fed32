# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

# -- Project information -----------------------------------------------------

import os
import sys
import sphinx_rtd_dark_mode

# Project root holds the geometry / traffic / scene packages
sys.path.insert(0, os.path.abspath("../.."))

project = 'roadsim'
copyright = '2026, roadsim contributors'
author = 'roadsim contributors'
release = '0.1.0'

# -- General configuration ---------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",    # API pages from docstrings
    "sphinx.ext.napoleon",   # NumPy style Parameters / Returns / Raises
    "sphinx.ext.viewcode",
    "sphinx_rtd_dark_mode"
]

napoleon_google_docstring = False
napoleon_numpy_docstring = True
autodoc_member_order = "bysource"
autodoc_default_options = {
    "members": True,
    "undoc-members": False,
    "exclude-members": "__weakref__",
}

templates_path = ['_templates']
exclude_patterns = ["test_*"]

# -- Options for HTML output -------------------------------------------------

html_theme = "sphinx_rtd_theme"
default_dark_mode = True
html_static_path = []
