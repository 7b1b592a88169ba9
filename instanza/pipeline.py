#!/usr/bin/env python3
"""
INSTANZA Pipeline - Main Orchestrator
Coordinates capture, the Captioner and the Compositor to develop photographs.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
import traceback
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from PIL import Image

from instanza.capture import load_capture
from instanza.captioner import PhotoCaptioner
from instanza.compositor import PhotoDecodeError, PolaroidCompositor
from instanza.locales import DEFAULT_LANGUAGE, DEFAULT_STYLE, LANGUAGES, STYLES, message, style_label
from instanza.utils import ImageSource

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp', '.JPG', '.JPEG', '.PNG', '.WEBP'}


@dataclass(frozen=True)
class DevelopedPolaroid:
    """A developed instant print and what it was made from."""

    id: str
    original: bytes
    polaroid: bytes
    caption: str
    style: str
    language: str

    def metadata(self) -> Dict[str, Any]:
        return {
            'entry_id': self.id,
            'caption': self.caption,
            'style': self.style,
            'style_label': style_label(self.language, self.style),
            'language': self.language,
        }


def new_entry_id() -> str:
    timestamp = datetime.now().strftime('%Y%m%d-%H%M%S')
    return f"{timestamp}-{os.urandom(4).hex()}"


class InstanzaPipeline:
    """Main pipeline orchestrator."""

    def __init__(
        self,
        repo_root: Path,
        captioner: Optional[PhotoCaptioner] = None,
        compositor: Optional[PolaroidCompositor] = None,
        style: Optional[str] = None,
        language: Optional[str] = None,
        max_concurrency: int = 2,
        dry_run: bool = False
    ):
        """Initialize the pipeline."""
        self.repo_root = repo_root
        self.inbox_dir = repo_root / 'inbox'
        self.developed_dir = repo_root / 'developed'

        self.style = style or os.getenv('INSTANZA_STYLE', DEFAULT_STYLE)
        self.language = language or os.getenv('INSTANZA_LANGUAGE', DEFAULT_LANGUAGE)
        if self.style not in STYLES:
            raise ValueError(f"Unknown caption style '{self.style}'")
        if self.language not in LANGUAGES:
            raise ValueError(f"Unknown language '{self.language}'")

        self.captioner = captioner or PhotoCaptioner()
        self.compositor = compositor or PolaroidCompositor()
        self.max_concurrency = max(1, max_concurrency)
        self.dry_run = dry_run

    async def develop(
        self,
        photo: Union[ImageSource, Image.Image],
        style: Optional[str] = None,
        language: Optional[str] = None
    ) -> DevelopedPolaroid:
        """
        Develop one capture: square-crop, caption, then composite.

        Args:
            photo: Uploaded photo as bytes, data URI, path or PIL image
            style: Caption style (defaults to the pipeline's style)
            language: Caption language (defaults to the pipeline's language)

        Returns:
            The developed instant print

        Raises:
            PhotoDecodeError: if the photo cannot be decoded
        """
        original = await asyncio.to_thread(load_capture, photo)
        return await self._develop_capture(new_entry_id(), original, style, language)

    async def regenerate(
        self,
        developed: DevelopedPolaroid,
        style: Optional[str] = None,
        language: Optional[str] = None
    ) -> DevelopedPolaroid:
        """Write a new caption for an already developed print and recomposite it."""
        language = language or developed.language
        logger.info(message(language, 'rescribing'))
        return await self._develop_capture(developed.id, developed.original, style or developed.style, language)

    async def _develop_capture(
        self,
        entry_id: str,
        original: bytes,
        style: Optional[str],
        language: Optional[str]
    ) -> DevelopedPolaroid:
        style = style or self.style
        language = language or self.language

        logger.info(message(language, 'analyzing'))
        caption = await asyncio.to_thread(self.captioner.generate, original, style, language)

        logger.info(message(language, 'inking'))
        polaroid = await asyncio.to_thread(self.compositor.compose, original, caption)

        return DevelopedPolaroid(
            id=entry_id,
            original=original,
            polaroid=polaroid,
            caption=caption,
            style=style,
            language=language,
        )

    def save_entry(self, developed: DevelopedPolaroid) -> Path:
        """
        Store a developed print as developed/<entry_id>/.

        Returns:
            Path to the entry directory
        """
        entry_dir = self.developed_dir / developed.id
        entry_dir.mkdir(parents=True, exist_ok=True)

        (entry_dir / 'original.jpg').write_bytes(developed.original)
        (entry_dir / 'polaroid.jpg').write_bytes(developed.polaroid)

        metadata = {
            **developed.metadata(),
            'developed_at': datetime.now().isoformat(timespec='seconds'),
        }
        with open(entry_dir / 'metadata.json', 'w', encoding='utf-8') as f:
            json.dump(metadata, f, indent=2, ensure_ascii=False)

        return entry_dir

    def load_entry(self, entry_dir: Path) -> DevelopedPolaroid:
        """Load a previously saved entry."""
        with open(entry_dir / 'metadata.json', encoding='utf-8') as f:
            metadata = json.load(f)

        return DevelopedPolaroid(
            id=metadata['entry_id'],
            original=(entry_dir / 'original.jpg').read_bytes(),
            polaroid=(entry_dir / 'polaroid.jpg').read_bytes(),
            caption=metadata['caption'],
            style=metadata['style'],
            language=metadata['language'],
        )

    def get_new_images(self) -> List[Path]:
        """Find all images in the inbox."""
        if not self.inbox_dir.exists():
            return []

        images = []
        for file_path in self.inbox_dir.iterdir():
            if file_path.is_file() and file_path.suffix in IMAGE_EXTENSIONS:
                # Skip hidden files and .gitkeep
                if not file_path.name.startswith('.'):
                    images.append(file_path)

        return sorted(images)

    async def process_image(self, image_path: Path, semaphore: asyncio.Semaphore) -> bool:
        """
        Develop a single inbox image and archive it into its entry.

        Returns:
            True if successful, False otherwise
        """
        async with semaphore:
            try:
                developed = await self.develop(image_path)
            except PhotoDecodeError as e:
                print(f"✗ {image_path.name}: {message(self.language, 'failed')} ({e})", file=sys.stderr)
                return False
            except Exception as e:
                print(f"✗ Error processing {image_path.name}: {e}", file=sys.stderr)
                traceback.print_exc()
                return False

        print(f"  {image_path.name}: \"{developed.caption}\"")

        if self.dry_run:
            return True

        try:
            entry_dir = self.save_entry(developed)
            image_path.unlink()
        except OSError as e:
            print(f"✗ Could not archive {image_path.name}: {e}", file=sys.stderr)
            return False

        print(f"✓ Developed {image_path.name} -> {entry_dir.relative_to(self.repo_root)}")
        return True

    async def run_async(self) -> Tuple[int, int]:
        """Develop every inbox image; returns (successful, failed)."""
        images = self.get_new_images()
        if not images:
            return 0, 0

        semaphore = asyncio.Semaphore(self.max_concurrency)
        results = await asyncio.gather(*(self.process_image(path, semaphore) for path in images))

        successful = sum(1 for ok in results if ok)
        return successful, len(results) - successful

    def run(self):
        """Run the complete pipeline."""
        print("\n" + "=" * 60)
        print("INSTANZA - Instant Print Developer")
        print("=" * 60 + "\n")

        images = self.get_new_images()
        if not images:
            print("No new images found in inbox/\n")
            return

        print(f"Found {len(images)} image(s) to develop "
              f"({style_label(self.language, self.style)}, {self.language}):\n")
        for img in images:
            print(f"  - {img.name}")
        print()

        successful, failed = asyncio.run(self.run_async())

        print("\n" + "=" * 60)
        print("Pipeline Summary")
        print("=" * 60)
        print(f"  Developed: {successful} successful, {failed} failed")
        print("=" * 60 + "\n")


def main():
    """Develop a single photo, or regenerate the caption of a saved entry."""
    from dotenv import load_dotenv

    parser = argparse.ArgumentParser(description="Develop a photo into an instant print")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("photo", nargs="?", type=Path, help="Photo to develop")
    source.add_argument("--regenerate", type=Path, metavar="ENTRY_DIR",
                        help="Rewrite the caption of a saved entry")
    parser.add_argument("-o", "--output", type=Path, help="Output JPEG path")
    parser.add_argument("--style", choices=STYLES, default=None)
    parser.add_argument("--language", choices=LANGUAGES, default=None)
    parser.add_argument("--save", action="store_true", help="Also store the result under developed/")
    args = parser.parse_args()

    repo_root = Path.cwd()
    load_dotenv(repo_root / ".env")
    logging.basicConfig(level=logging.INFO, format='%(message)s')

    try:
        pipeline = InstanzaPipeline(repo_root, style=args.style, language=args.language)
    except ValueError as e:
        print(f"Failed to initialize pipeline: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        if args.regenerate:
            previous = pipeline.load_entry(args.regenerate)
            developed = asyncio.run(pipeline.regenerate(previous, args.style, args.language))
        else:
            developed = asyncio.run(pipeline.develop(args.photo))
    except (PhotoDecodeError, OSError, KeyError) as e:
        key = 'regenerate_failed' if args.regenerate else 'failed'
        print(f"{message(pipeline.language, key)} ({e})", file=sys.stderr)
        sys.exit(1)

    print(developed.caption)

    if args.regenerate or args.save:
        entry_dir = pipeline.save_entry(developed)
        print(f"Entry saved: {entry_dir}")

    output_path = args.output
    if output_path is None and args.photo:
        output_path = args.photo.with_name(f"{args.photo.stem}-instanza.jpg")
    if output_path:
        output_path.write_bytes(developed.polaroid)
        print(f"Instant print saved to: {output_path}")


if __name__ == '__main__':
    main()
