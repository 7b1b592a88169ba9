"""Tests for pipeline module."""

import asyncio
import io
import json

import pytest
from PIL import Image

from instanza.compositor import PhotoDecodeError
from instanza.pipeline import DevelopedPolaroid, InstanzaPipeline


class FakeCaptioner:
    """Records requests and answers with canned captions."""

    def __init__(self, captions=("Salt on the wind",)):
        self.captions = list(captions)
        self.calls = []

    def generate(self, image, style, language):
        self.calls.append((image, style, language))
        return self.captions[min(len(self.calls), len(self.captions)) - 1]


def jpeg(size=(1600, 1200), color=(120, 160, 200)):
    buffer = io.BytesIO()
    Image.new('RGB', size, color).save(buffer, format='JPEG')
    return buffer.getvalue()


@pytest.fixture
def repo(tmp_path):
    (tmp_path / 'inbox').mkdir()
    return tmp_path


@pytest.fixture
def captioner():
    return FakeCaptioner(["Salt on the wind", "Gulls argue about nothing"])


@pytest.fixture
def pipeline(repo, captioner, compositor, monkeypatch):
    monkeypatch.delenv('INSTANZA_STYLE', raising=False)
    monkeypatch.delenv('INSTANZA_LANGUAGE', raising=False)
    return InstanzaPipeline(repo, captioner=captioner, compositor=compositor)


class TestInit:
    """Tests for pipeline configuration."""

    def test_defaults(self, pipeline, repo):
        assert pipeline.style == 'inspiring'
        assert pipeline.language == 'en'
        assert pipeline.inbox_dir == repo / 'inbox'
        assert pipeline.developed_dir == repo / 'developed'

    def test_env_style_and_language(self, repo, captioner, compositor, monkeypatch):
        monkeypatch.setenv('INSTANZA_STYLE', 'funny')
        monkeypatch.setenv('INSTANZA_LANGUAGE', 'nl')

        pipeline = InstanzaPipeline(repo, captioner=captioner, compositor=compositor)

        assert (pipeline.style, pipeline.language) == ('funny', 'nl')

    def test_unknown_style_rejected(self, repo, captioner, compositor):
        with pytest.raises(ValueError):
            InstanzaPipeline(repo, captioner=captioner, compositor=compositor, style='grumpy')


class TestDevelop:
    """Tests for developing a single capture."""

    def test_develop_produces_print(self, pipeline, captioner):
        developed = asyncio.run(pipeline.develop(jpeg()))

        assert developed.caption == "Salt on the wind"
        assert (developed.style, developed.language) == ('inspiring', 'en')
        with Image.open(io.BytesIO(developed.polaroid)) as img:
            assert img.size == (1200, 1480)
        with Image.open(io.BytesIO(developed.original)) as img:
            assert img.size == (1500, 1500)

    def test_captioner_receives_square_capture(self, pipeline, captioner):
        developed = asyncio.run(pipeline.develop(jpeg(), style='literary', language='fr'))

        image, style, language = captioner.calls[0]
        assert image == developed.original
        assert (style, language) == ('literary', 'fr')

    def test_undecodable_photo_fails_before_captioning(self, pipeline, captioner):
        with pytest.raises(PhotoDecodeError):
            asyncio.run(pipeline.develop(b"corrupted upload"))

        assert captioner.calls == []

    def test_regenerate_keeps_original(self, pipeline, captioner):
        first = asyncio.run(pipeline.develop(jpeg()))
        second = asyncio.run(pipeline.regenerate(first, style='funny'))

        assert second.id == first.id
        assert second.original == first.original
        assert second.caption == "Gulls argue about nothing"
        assert second.style == 'funny'
        assert second.language == first.language


class TestEntries:
    """Tests for saving and loading developed entries."""

    def test_save_entry_writes_files(self, pipeline):
        developed = DevelopedPolaroid(
            id='20240503-090700-abcd1234',
            original=jpeg((10, 10)),
            polaroid=jpeg((12, 15)),
            caption="Salt on the wind",
            style='funny',
            language='nl',
        )

        entry_dir = pipeline.save_entry(developed)

        assert entry_dir == pipeline.developed_dir / developed.id
        assert (entry_dir / 'original.jpg').read_bytes() == developed.original
        assert (entry_dir / 'polaroid.jpg').read_bytes() == developed.polaroid
        metadata = json.loads((entry_dir / 'metadata.json').read_text(encoding='utf-8'))
        assert metadata['caption'] == "Salt on the wind"
        assert metadata['style_label'] == "Grappig"
        assert 'developed_at' in metadata

    def test_load_entry_restores_print(self, pipeline):
        developed = asyncio.run(pipeline.develop(jpeg()))
        entry_dir = pipeline.save_entry(developed)

        assert pipeline.load_entry(entry_dir) == developed


class TestRun:
    """Tests for processing the inbox."""

    def test_get_new_images_filters(self, pipeline, repo):
        (repo / 'inbox' / 'b.jpg').write_bytes(jpeg())
        (repo / 'inbox' / 'a.png').write_bytes(jpeg())
        (repo / 'inbox' / '.gitkeep').write_text("")
        (repo / 'inbox' / 'notes.txt').write_text("not a photo")

        names = [path.name for path in pipeline.get_new_images()]

        assert names == ['a.png', 'b.jpg']

    def test_no_inbox(self, tmp_path, captioner, compositor):
        pipeline = InstanzaPipeline(tmp_path / 'empty', captioner=captioner, compositor=compositor)

        assert pipeline.get_new_images() == []
        assert asyncio.run(pipeline.run_async()) == (0, 0)

    def test_run_develops_and_archives(self, pipeline, repo):
        """Good photos become entries; a broken one is counted and left in place."""
        (repo / 'inbox' / 'beach.jpg').write_bytes(jpeg())
        (repo / 'inbox' / 'dunes.jpg').write_bytes(jpeg(color=(200, 180, 120)))
        (repo / 'inbox' / 'broken.jpg').write_bytes(b"not a jpeg")

        successful, failed = asyncio.run(pipeline.run_async())

        assert (successful, failed) == (2, 1)
        entries = [p for p in pipeline.developed_dir.iterdir() if p.is_dir()]
        assert len(entries) == 2
        assert [p.name for p in pipeline.get_new_images()] == ['broken.jpg']

    def test_archive_failure_is_counted(self, pipeline, repo):
        """An entry that cannot be written fails that image, not the run."""
        (repo / 'developed').write_text("a file where the archive should be")
        (repo / 'inbox' / 'beach.jpg').write_bytes(jpeg())

        assert asyncio.run(pipeline.run_async()) == (0, 1)
        assert (repo / 'inbox' / 'beach.jpg').exists()

    def test_dry_run_leaves_inbox(self, repo, captioner, compositor):
        pipeline = InstanzaPipeline(repo, captioner=captioner, compositor=compositor, dry_run=True)
        (repo / 'inbox' / 'beach.jpg').write_bytes(jpeg())

        assert asyncio.run(pipeline.run_async()) == (1, 0)
        assert not pipeline.developed_dir.exists()
        assert (repo / 'inbox' / 'beach.jpg').exists()
