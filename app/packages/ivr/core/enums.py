"""枚举定义：约束角色、条目类型以及活动日志动作的可选值。"""

from enum import Enum


class RoleEnum(str, Enum):
    ADMIN = "admin"
    STANDARD = "standard"


class EntryKind(str, Enum):
    """目录条目类型：文件夹、音频或其他文件。"""

    FOLDER = "folder"
    MEDIA = "media"
    OTHER = "other"


class ListingSourceEnum(str, Enum):
    """列表数据来源：远端接口或本地基线数据。"""

    REMOTE = "remote"
    BASELINE = "baseline"


class ActivityActionEnum(str, Enum):
    """活动日志记录的文件动作。"""

    DOWNLOAD = "download"
    UPLOAD = "upload"
    DELETE = "delete"
