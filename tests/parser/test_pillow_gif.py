"""Pillowが生成した実際のGIFファイルに対する解析テスト"""

from pathlib import Path

import pytest
from PIL import Image

from gifinspect.parser import BlockType, CollectingObserver, GifReader, ParseOutcome


@pytest.fixture
def animated_gif(tmp_path: Path) -> Path:
    """2フレーム・無限ループ・コメント付きのGIFを作成"""
    frames = [
        Image.new("RGB", (8, 6), (255, 0, 0)),
        Image.new("RGB", (8, 6), (0, 0, 255)),
    ]
    path = tmp_path / "anim.gif"
    frames[0].save(
        path,
        save_all=True,
        append_images=frames[1:],
        duration=100,
        loop=0,
        comment=b"made by pillow",
    )
    return path


@pytest.fixture
def still_gif(tmp_path: Path) -> Path:
    """1フレームの静止GIFを作成"""
    path = tmp_path / "still.gif"
    Image.new("L", (3, 5), 128).save(path)
    return path


class TestPillowGif:
    """Pillow生成GIFの解析テスト"""

    def test_animated_gif(self, animated_gif: Path) -> None:
        """正常系: フレーム数・ループ回数・遅延時間を読み取れる"""
        observer = CollectingObserver()

        with GifReader.from_path(animated_gif, observer) as reader:
            result = reader.parse()

        assert result.outcome is ParseOutcome.TRAILER
        assert result.end_offset == animated_gif.stat().st_size
        assert result.header.signature == "GIF"
        assert result.header.version == "89a"
        assert (result.header.canvas_width, result.header.canvas_height) == (8, 6)

        images = observer.of_type(BlockType.TABLE_BASED_IMAGE)
        assert len(images) == 2
        for image in images:
            assert image.sub_block_count >= 1
            assert image.graphic_control is not None
            assert image.graphic_control.delay_time == 10

        applications = observer.of_type(BlockType.APPLICATION_EXTENSION)
        assert [app.loop_count for app in applications] == [0]

        comments = observer.of_type(BlockType.COMMENT_EXTENSION)
        assert any(comment.data == b"made by pillow" for comment in comments)

    def test_blocks_are_contiguous(self, animated_gif: Path) -> None:
        """各ブロックは直前のブロックの終了位置から始まる"""
        observer = CollectingObserver()

        with GifReader.from_path(animated_gif, observer) as reader:
            result = reader.parse()

        previous_end = 0
        for event in observer.events:
            assert event.start == previous_end
            previous_end = event.end
        # 最後のブロックの後はトレーラー1バイトのみ
        assert result.end_offset == previous_end + 1

    def test_still_gif(self, still_gif: Path) -> None:
        """正常系: 静止画は画像ブロック1つで終わる"""
        observer = CollectingObserver()

        with GifReader.from_path(still_gif, observer) as reader:
            result = reader.parse()

        assert result.outcome is ParseOutcome.TRAILER
        images = observer.of_type(BlockType.TABLE_BASED_IMAGE)
        assert len(images) == 1
        assert (images[0].width, images[0].height) == (3, 5)
