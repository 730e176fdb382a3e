# docs/conf.py
import os
import sys

# src layout
sys.path.insert(0, os.path.abspath("../src"))

project = "jkepsolver"
author = "Kento Masuda"
copyright = "jkepsolver"
master_doc = "index"

extensions = [
    "myst_parser",
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
    "sphinx.ext.viewcode",
]

# version written by setuptools_scm
try:
    from jkepsolver.jkepsolver_version import __version__
    release = __version__
except ImportError:
    release = "unknown"

templates_path = ["_templates"]
exclude_patterns = ["_build", "Thumbs.db", ".DS_Store"]

html_theme = "sphinx_rtd_theme"
