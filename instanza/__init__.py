"""
INSTANZA - Instant-Print Photo Developer

Components:
- capture.py: Square-crops uploaded or captured photos
- captioner.py: Writes handwritten-style captions using Gemini Vision
- compositor.py: Develops photo + caption into the framed instant print
- pipeline.py: Orchestrates capture, caption and compositing
"""

__version__ = '1.0.0'
