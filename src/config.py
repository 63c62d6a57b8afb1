"""配置管理模块 - 从YAML文件加载服务配置（基础文件 + 环境覆盖文件）并初始化日志"""
import os
import socket
import sys
from typing import Any, Dict, List, Optional

import yaml
from loguru import logger

ENVIRONMENT_VARIABLE = "SERVICE_ENVIRONMENT"
DEFAULT_ENVIRONMENT = "production"
DEFAULT_INTERVAL_MS = 1000
DEFAULT_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} {level} {message}"

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class ServiceConfigError(ValueError):
    """服务配置缺失或无效"""


def get_environment() -> str:
    """获取当前运行环境名称

    Returns:
        str: 环境变量 SERVICE_ENVIRONMENT 的值，未设置时为 "production"
    """
    env = os.environ.get(ENVIRONMENT_VARIABLE, "").strip()
    return env or DEFAULT_ENVIRONMENT


def get_instance_id() -> str:
    """主机名前12个字符，用于区分日志文件"""
    return socket.gethostname()[:12]


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigLoader:
    """配置加载器 - 负责从YAML文件加载配置并提供访问方法"""

    def __init__(self, config_path: Optional[str] = None, environment: Optional[str] = None):
        """初始化配置加载器

        Args:
            config_path: 基础配置文件路径，如果为None则使用默认路径 conf/config.yml
            environment: 环境名称，如果为None则读取环境变量
        """
        if config_path is None:
            config_path = os.path.join(PROJECT_ROOT, "conf", "config.yml")

        self.config_path = config_path
        self.environment = environment or get_environment()
        root, ext = os.path.splitext(config_path)
        self.env_config_path = f"{root}.{self.environment}{ext}"
        self.config = self._load_config()

    def _load_file(self, path: str) -> Dict[str, Any]:
        """加载单个YAML文件，文件不存在时返回空字典"""
        if not os.path.exists(path):
            logger.debug(f"配置文件不存在，跳过: {path}")
            return {}
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f) or {}
        except Exception as e:
            logger.error(f"加载配置文件失败 {path}: {e}")
            raise

    def _load_config(self) -> Dict[str, Any]:
        """加载基础配置并用环境配置覆盖

        Returns:
            Dict[str, Any]: 合并后的配置字典
        """
        base = self._load_file(self.config_path)
        override = self._load_file(self.env_config_path)
        return _deep_merge(base, override)

    @property
    def loaded_files(self) -> List[str]:
        return [p for p in (self.config_path, self.env_config_path) if os.path.exists(p)]

    def get_service_config(self) -> Dict[str, Any]:
        """获取服务配置

        Returns:
            Dict[str, Any]: service 节点
        """
        return self.config.get('service') or {}

    def get_logging_config(self) -> Dict[str, Any]:
        """获取日志配置

        Returns:
            Dict[str, Any]: logging 节点
        """
        return self.config.get('logging') or {}

    def is_debug(self) -> bool:
        """是否开启调试日志"""
        return bool(self.get_service_config().get('debug', False))

    def get_execution_window(self) -> Optional[str]:
        """获取执行时间窗口

        Returns:
            Optional[str]: "HH:MM-HH:MM" 格式字符串，未配置时为None（校验由运行器完成）
        """
        return self.get_service_config().get('execution_window')

    def get_interval_ms(self) -> int:
        """获取执行间隔（毫秒）

        Raises:
            ServiceConfigError: 间隔不是正整数
        """
        interval = self.get_service_config().get('interval_ms', DEFAULT_INTERVAL_MS)
        if isinstance(interval, bool) or not isinstance(interval, int) or interval <= 0:
            raise ServiceConfigError(f"service.interval_ms 必须为正整数: {interval!r}")
        return interval

    def get_service_module(self) -> Optional[str]:
        return self.get_service_config().get('module')

    def get_service_class(self) -> Optional[str]:
        return self.get_service_config().get('class')


def setup_logger(config_instance: ConfigLoader) -> List[str]:
    """根据YAML配置设置loguru日志

    常规日志文件记录 INFO 及以上级别；service.debug 为真时额外写入 DEBUG 日志文件。

    Args:
        config_instance: 配置加载器实例

    Returns:
        List[str]: 日志文件路径列表
    """
    log_config = config_instance.get_logging_config()
    debug = config_instance.is_debug()
    instance_id = get_instance_id()

    # 确保日志目录存在
    log_dir_path = os.path.join(PROJECT_ROOT, log_config.get('dir', 'logs'))
    os.makedirs(log_dir_path, exist_ok=True)

    log_format = log_config.get('format', DEFAULT_LOG_FORMAT)
    file_options = dict(
        format=log_format,
        rotation=log_config.get('rotation', "1 days"),
        retention=log_config.get('retention', "7 days"),
        compression="zip",
        backtrace=log_config.get('backtrace', True),
        diagnose=log_config.get('diagnose', False),
        colorize=False,
        enqueue=True,
    )

    # 移除默认处理器
    logger.remove()

    # 控制台
    logger.add(
        sys.stderr,
        level="DEBUG" if debug else log_config.get('level', 'INFO'),
        format=log_format,
        colorize=log_config.get('colorize', True),
    )

    # 常规日志文件
    general_log_path = os.path.join(log_dir_path, f"log-{instance_id}.log")
    logger.add(general_log_path, level="INFO", **file_options)
    log_files = [general_log_path]

    # 调试日志文件
    if debug:
        debug_log_path = os.path.join(log_dir_path, f"log-{instance_id}-debug.log")
        logger.add(debug_log_path, level="DEBUG", **file_options)
        log_files.append(debug_log_path)

    logger.info(f"日志配置已初始化 (环境: {config_instance.environment})，日志文件: {', '.join(log_files)}")
    return log_files
