"""Service entry point.

Loads the YAML configuration, initialises logging, discovers the configured
service class and drives it with :class:`service_runner.ServiceRunner` until
SIGTERM/SIGINT arrives.

可以通过 --run-now 参数立即执行一次任务（忽略执行时间窗口）
"""
from __future__ import annotations

import argparse
import importlib
import inspect
import os
import signal
import sys
import threading
from typing import List, Optional

from loguru import logger

from base_service import BaseService
from config import ConfigLoader, ServiceConfigError, setup_logger
from execution_window import ExecutionWindowError
from service_runner import ServiceRunner

STOP_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def _discover_service(module_name: Optional[str], class_name: Optional[str] = None) -> type[BaseService]:
    """Import *module_name* and return the service class it provides.

    With *class_name* the class is looked up by name, otherwise the first
    subclass of *BaseService* defined in the module is used.
    """
    if not module_name:
        raise ServiceConfigError("service.module is not configured")

    try:
        module = importlib.import_module(module_name)
        logger.info(f"成功导入模块: {module_name}")
    except ImportError as exc:
        raise ServiceConfigError(f"无法导入模块 {module_name}: {exc}") from exc

    if class_name:
        service_cls = getattr(module, class_name, None)
        if not (inspect.isclass(service_cls) and issubclass(service_cls, BaseService)):
            raise ServiceConfigError(f"{module_name}.{class_name} is not a BaseService subclass")
        if inspect.isabstract(service_cls):
            raise ServiceConfigError(f"{module_name}.{class_name} is abstract")
        return service_cls

    for _, obj in inspect.getmembers(module, inspect.isclass):
        if issubclass(obj, BaseService) and obj is not BaseService and not inspect.isabstract(obj):
            return obj
    raise ServiceConfigError(f"No BaseService subclass found in module {module_name}")


def run_once(service: BaseService) -> None:
    """Run start, a single iteration and stop, bypassing interval and window."""
    service.on_start()
    try:
        service.execute()
    finally:
        service.on_stop()


def run_until_signalled(runner: ServiceRunner, interval_ms: int) -> int:
    """Run *runner* on a worker thread and stop it on SIGTERM/SIGINT.

    The signal handler runs on the main thread and blocks in
    ``request_stop`` until the service has stopped, so the loop itself must
    live on another thread.

    Returns:
        int: process exit code, 0 on a clean stop, 1 if a hook raised
    """
    failures: List[BaseException] = []

    def _target() -> None:
        try:
            runner.run(interval_ms)
        except BaseException as exc:
            failures.append(exc)

    def _handle_signal(signum, frame) -> None:
        logger.info(f"收到信号 {signal.Signals(signum).name}，正在停止服务...")
        runner.request_stop()

    worker = threading.Thread(target=_target, name="service-runner")
    worker.start()
    # handlers only once the loop is running, request_stop waits on it
    previous = {}
    try:
        for sig in STOP_SIGNALS:
            previous[sig] = signal.signal(sig, _handle_signal)
        while worker.is_alive():
            worker.join(0.5)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    if failures:
        logger.opt(exception=failures[0]).error("Service terminated by an unhandled exception")
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    # 解析命令行参数
    parser = argparse.ArgumentParser(description='轮询服务运行器')
    parser.add_argument('--config', help='基础配置文件路径 (默认 conf/config.yml)')
    parser.add_argument('--interval', type=int, help='执行间隔（毫秒），覆盖配置文件')
    parser.add_argument('--run-now', action='store_true', help='立即执行一次任务，不进入循环模式')

    # 检查环境变量和命令行参数
    args = parser.parse_args(argv)
    run_now = args.run_now or os.environ.get('RUN_NOW', '').lower() in ('true', '1', 'yes')

    config = ConfigLoader(args.config)
    setup_logger(config)

    try:
        service_cls = _discover_service(config.get_service_module(), config.get_service_class())
        service = service_cls(logger=logger)
        runner = ServiceRunner(service, config.get_execution_window())
        if not run_now:
            interval_ms = args.interval if args.interval is not None else config.get_interval_ms()
            if interval_ms <= 0:
                raise ServiceConfigError(f"--interval 必须为正整数: {interval_ms}")
    except ExecutionWindowError:
        # already reported by the runner
        return 1
    except ServiceConfigError as exc:
        logger.critical(f"配置错误: {exc}")
        return 1

    if run_now:
        logger.info("手动触发模式：立即执行任务")
        run_once(service)
        return 0

    logger.info(f"服务 {service.name} 启动，按 Ctrl+C 或发送 SIGTERM 停止")
    return run_until_signalled(runner, interval_ms)


if __name__ == "__main__":
    sys.exit(main())
