"""
File Management Utilities

This module reads saved puzzle pages and writes the converted markdown
files next to each other in the output directory.
"""

import os
from pathlib import Path
from typing import Optional
import logging


class FileManager:
    """
    Manages reading page HTML and saving converted markdown.
    """

    def __init__(self, base_output_dir: str = "output"):
        """
        Initialize the file manager.

        Args:
            base_output_dir: Base directory for converted files
        """
        self.base_output_dir = Path(base_output_dir)
        self.logger = logging.getLogger(__name__)

        self.base_output_dir.mkdir(parents=True, exist_ok=True)
        self.logger.debug(f"Output directory: {self.base_output_dir.absolute()}")

    def read_page(self, html_path: str) -> str:
        """
        Read a saved page as text.

        Args:
            html_path: Path to the saved HTML file

        Returns:
            The page HTML
        """
        with open(html_path, 'r', encoding='utf-8') as f:
            html_content = f.read()

        self.logger.debug(f"Read {len(html_content)} chars from {os.path.basename(html_path)}")
        return html_content

    def get_output_path(self, html_path: str, output_path: Optional[str] = None) -> str:
        """
        Get the markdown path for a page.

        Args:
            html_path: Path to the saved HTML file
            output_path: Explicit output path, used as-is when given

        Returns:
            Path of the markdown file
        """
        if output_path:
            return str(output_path)
        return str(self.base_output_dir / f"{Path(html_path).stem}.md")

    def save_markdown(self, content: str, output_path: str) -> str:
        """
        Save converted markdown to a file.

        Args:
            content: Markdown body
            output_path: Destination path

        Returns:
            Path to the saved file
        """
        directory = os.path.dirname(os.path.abspath(output_path))
        os.makedirs(directory, exist_ok=True)

        # newline='' keeps the body byte-for-byte
        with open(output_path, 'w', encoding='utf-8', newline='') as f:
            f.write(content)

        file_size = os.path.getsize(output_path)
        self.logger.info(f"Saved markdown ({file_size} bytes): {os.path.basename(output_path)}")

        return output_path
