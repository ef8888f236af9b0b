import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler

from invoice_scan.core.config import settings

LOG_FILE_NAME = "invoice_scan.log"


def setup_logging(log_dir: str | Path | None = None) -> Path:
    """配置全局日志系统：同时输出到控制台和文件"""

    # 1. 确保日志目录存在
    target_dir = Path(log_dir or settings.log_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    log_file = target_dir / LOG_FILE_NAME
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    # 2. 格式：时间 | 级别 | 模块名:行号 | 内容
    log_format = logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s")

    # 3. 文件处理器 - 5MB 一个文件，保留 5 个备份
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setFormatter(log_format)
    file_handler.setLevel(level)

    # 4. 控制台处理器
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_format)
    console_handler.setLevel(level)

    # 5. 配置根记录器
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # 清除旧的 handlers (避免重复打印)
    root_logger.handlers = []
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # 6. 接管 Uvicorn 的日志
    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
        logger = logging.getLogger(logger_name)
        logger.handlers = [file_handler, console_handler]
        logger.propagate = False

    logging.info(f"✅ Logging initialized. Logs will be written to: {log_file.absolute()}")
    return log_file
