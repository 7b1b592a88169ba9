#!/usr/bin/env python3
"""
INSTANZA Captioner - Handwritten Caption Writer
Uses Gemini Vision to write a short caption in the chosen style and language.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

from google import genai
from google.genai import types
from PIL import Image

from instanza.compositor import decode_photo
from instanza.locales import DEFAULT_LANGUAGE, DEFAULT_STYLE, LANGUAGE_NAMES, LANGUAGES, STYLES
from instanza.utils import ImageSource, retry_with_backoff

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gemini-3-flash-preview'
EMPTY_CAPTION = "A moment captured in time."
FALLBACK_CAPTION = "Fading memories."

STYLE_PROMPTS = {
    'breezy': "cheerful, playful and breezy",
    'funny': "funny, witty and tongue-in-cheek",
    'serious': "serious, restrained and meaningful",
    'inspiring': "deeply inspiring, hopeful and encouraging",
    'philosophic': "philosophical, contemplative and existential",
    'literary': "literary, poetic and full of imagery",
    'fortune': "like a fortune cookie: short, mystical, a little cryptic and with unsolicited advice for the future",
    'positive': "extremely positive, energetic, enthusiastic and motivating, like a short pep talk",
}


def resolve_api_key(api_key: Optional[str] = None) -> str:
    """
    Return a usable Gemini API key from the argument or the environment.

    Raises:
        ValueError: if the key is missing, a placeholder, or too short
    """
    key = api_key or os.getenv('GEMINI_API_KEY') or os.getenv('API_KEY')
    if not key or key == 'your_api_key_here' or len(key) < 10:
        raise ValueError("API key is missing or invalid. Set GEMINI_API_KEY in your .env file.")
    return key


class PhotoCaptioner:
    """Writes short handwritten-style captions for photographs."""

    def __init__(self, api_key: Optional[str] = None, client=None):
        """Initialize the Captioner with Gemini API credentials."""
        self.client = client or genai.Client(api_key=resolve_api_key(api_key))
        self.model_name = os.getenv('GEMINI_CAPTION_MODEL', DEFAULT_MODEL)
        self.temperature = 0.9
        self.top_p = 0.95

    def build_prompt(self, style: str, language: str) -> str:
        """Build the caption prompt for a style and target language."""
        if style not in STYLE_PROMPTS:
            raise ValueError(f"Unknown caption style '{style}'. Expected one of: {', '.join(STYLES)}")
        if language not in LANGUAGE_NAMES:
            raise ValueError(f"Unknown language '{language}'. Expected one of: {', '.join(LANGUAGES)}")

        return f"""You are a soulful artist and philosopher capturing a fleeting moment on film. Analyze this image and create a {STYLE_PROMPTS[style]} text in {LANGUAGE_NAMES[language]}.

Rules:
1. It must be a short observation or thought inspired by the subject and atmosphere of the photo.
2. Keep it VERY concise (maximum 12 words) so it fits in the handwritten margin of a polaroid.
3. Make it feel authentic to a real person writing a note on a photo.
4. Do not use hashtags or emojis.
5. ONLY output the text itself, no quotes or additional commentary."""

    @retry_with_backoff(max_retries=2, initial_delay=1.0)
    def _request_caption(self, img: Image.Image, prompt: str) -> str:
        response = self.client.models.generate_content(
            model=self.model_name,
            contents=[img, prompt],
            config=types.GenerateContentConfig(
                temperature=self.temperature,
                top_p=self.top_p
            )
        )
        return (response.text or '').strip()

    def generate(
        self,
        image: Union[ImageSource, Image.Image],
        style: str = DEFAULT_STYLE,
        language: str = DEFAULT_LANGUAGE
    ) -> str:
        """
        Write a caption for a photograph.

        Args:
            image: Photo as bytes, data URI, path or PIL image
            style: One of STYLES
            language: One of LANGUAGES

        Returns:
            The caption, or a short fallback caption if the provider fails

        Raises:
            ValueError: if style or language is not supported
        """
        prompt = self.build_prompt(style, language)

        try:
            img = decode_photo(image)
            caption = self._request_caption(img, prompt)
        except Exception as e:
            logger.error("Gemini Vision error: %s", e)
            return FALLBACK_CAPTION

        return caption or EMPTY_CAPTION


def main():
    """CLI interface for the Captioner."""
    from dotenv import load_dotenv

    parser = argparse.ArgumentParser(description="Write a caption for a photo")
    parser.add_argument("image_path", type=Path)
    parser.add_argument("--style", choices=STYLES, default=None)
    parser.add_argument("--language", choices=LANGUAGES, default=None)
    args = parser.parse_args()

    load_dotenv()
    logging.basicConfig(level=logging.INFO, format='%(levelname)s %(name)s: %(message)s')

    if not args.image_path.exists():
        print(f"Error: Image not found: {args.image_path}", file=sys.stderr)
        sys.exit(1)

    try:
        captioner = PhotoCaptioner()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    style = args.style or os.getenv('INSTANZA_STYLE', DEFAULT_STYLE)
    language = args.language or os.getenv('INSTANZA_LANGUAGE', DEFAULT_LANGUAGE)
    print(captioner.generate(args.image_path, style, language))


if __name__ == '__main__':
    main()
