"""
DocUploader - Python Example

Creates a container, uploads every file given on the command line with a
progress readout, lists the container and downloads the first file back.

Requirements:
    pip install -e .

Usage:
    docuploader serve --storage memory
    python upload_documents.py report.pdf notes.txt
"""

import mimetypes
import os
import sys
import tempfile
from pathlib import Path

from docuploader.client import ApiError, DocUploaderClient, UploadProgress

API_URL = os.getenv("DOCUPLOADER_API_URL", "http://localhost:5000")
CONTAINER = "example-docs"


def print_progress(progress: UploadProgress) -> None:
    print(f"\r  {progress.percentage:3d}% ({progress.bytes_sent}/{progress.total_bytes} bytes)", end="")


def main(paths):
    with DocUploaderClient(API_URL) as client:
        print(f"Server status: {client.health().status}")

        try:
            client.create_container(CONTAINER)
            print(f"Created container '{CONTAINER}'")
        except ApiError as e:
            if e.status_code != 409:
                raise
            print(f"Container '{CONTAINER}' already exists")

        uploaded = []
        for path in map(Path, paths):
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            print(f"Uploading {path.name} ({content_type})")
            result = client.upload_file(
                CONTAINER, path.name, path.read_bytes(), content_type, on_progress=print_progress
            )
            print(f"\n  -> {result.filename}")
            uploaded.append(result)

        print(f"\nFiles in '{CONTAINER}':")
        for entry in client.list_files(CONTAINER):
            print(f"  {entry.original_name:30} {entry.size:>10} {entry.content_type}")

        if uploaded:
            destination = Path(tempfile.gettempdir()) / uploaded[0].original_name
            size = client.download_file(CONTAINER, uploaded[0].filename, destination)
            print(f"\nDownloaded {size} bytes to {destination}")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    main(sys.argv[1:])
