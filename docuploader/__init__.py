"""
DocUploader: document upload API over Azure Blob Storage.

Create containers, upload files into them, list, download and delete them.
"""

__version__ = "0.1.0"
__author__ = "DocUploader Contributors"

from .app import create_app

__all__ = ["create_app", "__version__"]
