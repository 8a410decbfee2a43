"""基线数据：未配置远端凭证或远端不可用时使用的示例目录树。

数据只会被叠加层“遮蔽”，从不被修改；每次调用 ``default_baseline()`` 都返回新列表。
"""

from __future__ import annotations

from app.packages.ivr.core.enums import EntryKind
from app.packages.ivr.services.entries import Entry

_MB = 1024 * 1024

_SAMPLE_AUDIO = "https://www.soundhelix.com/examples/mp3/SoundHelix-Song-{}.mp3"


def _folder(id_: str, path: str, metadata: str, modified_at: str) -> Entry:
    return Entry(
        id=id_,
        name=path.rsplit("/", 1)[-1],
        path=path,
        kind=EntryKind.FOLDER,
        modified_at=modified_at,
        metadata_text=metadata,
    )


def _audio(id_: str, name: str, path: str, size_mb: float, duration: str, modified_at: str, song: int) -> Entry:
    return Entry(
        id=id_,
        name=name,
        path=path,
        kind=EntryKind.MEDIA,
        modified_at=modified_at,
        size_bytes=int(size_mb * _MB),
        content_url=_SAMPLE_AUDIO.format(song),
        extension=path.rsplit(".", 1)[-1],
        duration=duration,
    )


def default_baseline() -> list[Entry]:
    return [
        # 根目录
        _folder("f1", "1", "חדשות והודעות", "2023-10-25"),
        _folder("f2", "2", "שיעורי תורה", "2023-10-24"),
        _folder("f3", "3", "מוזיקה וניגונים", "2023-10-20"),
        # 分机 1：新闻
        _folder("f4", "1/1", "מבזקים כלליים", "2023-10-25"),
        _folder("f5", "1/2", "הודעות הקהילה", "2023-10-23"),
        _audio("f101", "פתיח ראשי.wav", "1/M0000.wav", 2.5, "00:45", "2023-10-25", 1),
        _audio("f102", "עדכון בוקר.wav", "1/1/001.wav", 5.1, "03:12", "2023-10-26", 2),
        # 分机 2：课程
        _folder("f6", "2/1", "דף היומי", "2023-10-26"),
        _folder("f7", "2/2", "פרשת שבוע", "2023-10-26"),
        _audio("f201", "הקדמה לשיעורים.wav", "2/M0000.wav", 1.2, "01:00", "2023-09-01", 3),
        _audio("f202", "מסכת קידושין דף ב.wav", "2/1/002.wav", 45, "45:00", "2023-10-26", 4),
        # 分机 3：音乐
        _audio("f301", "ניגון שמחה.wav", "3/001.wav", 4.5, "03:30", "2023-10-15", 8),
    ]
