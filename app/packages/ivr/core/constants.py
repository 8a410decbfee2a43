"""常量定义：集中维护状态码、令牌类型与键值存储键名。"""

HTTP_STATUS_OK = 200
HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_FORBIDDEN = 403
HTTP_STATUS_NOT_FOUND = 404
HTTP_STATUS_CONFLICT = 409

ACCESS_TOKEN_TYPE = "bearer"

# 远端接口约定的成功状态值
REMOTE_STATUS_OK = "OK"

# 叠加层与凭证在键值存储中的键名，实际键为 "<namespace>:<suffix>"
BLOB_DELETED_PATHS = "deleted_paths"
BLOB_CREATED_ENTRIES = "created_entries"
BLOB_METADATA_OVERRIDES = "metadata_overrides"
BLOB_CREDENTIAL = "credential"

# 基线数据缺失完整时间时补齐的默认时刻
BASELINE_DEFAULT_TIME = "12:00:00"

# 远端未提供时间时的占位文本
MISSING_TIMESTAMP = "---"
