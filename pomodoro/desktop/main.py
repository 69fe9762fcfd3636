from __future__ import annotations

import os
import socket
import threading
import time
import urllib.error
import urllib.request
from pathlib import Path

from ..settings import default_settings_path


def launch_desktop(settings_path: Path | None = None) -> int:
    try:
        import uvicorn
        import webview
    except Exception as exc:
        print(f"桌面界面启动失败：缺少依赖（fastapi/uvicorn/pywebview）。{exc}")
        print("请先安装依赖：pip install -e .")
        return 2

    from ..api.app import create_app

    app = create_app(settings_path=Path(settings_path or default_settings_path()))
    host = "127.0.0.1"
    port = _find_free_port()
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level="warning",
        )
    )
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    if not _wait_for_api(host, port, timeout_sec=12.0):
        print("桌面界面启动失败：本地 API 未在预期时间内就绪。")
        return 2

    try:
        webview.create_window(
            "Pomodoro",
            f"http://{host}:{port}",
            width=420,
            height=560,
            min_size=(360, 480),
        )
        webview.start(**_webview_start_options())
    except Exception as exc:
        print(f"桌面界面启动失败：{exc}")
        if os.name == "nt":
            print("请确认已安装 Microsoft Edge WebView2 Runtime，且可用。")
        return 2
    finally:
        server.should_exit = True
        thread.join(timeout=2.0)

    return 0


def _find_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return int(s.getsockname()[1])


def _wait_for_api(host: str, port: int, timeout_sec: float) -> bool:
    deadline = time.time() + timeout_sec
    url = f"http://{host}:{port}/api/v1/health"
    while time.time() < deadline:
        try:
            with urllib.request.urlopen(url, timeout=1.2) as resp:
                if resp.status == 200:
                    return True
        except (urllib.error.URLError, TimeoutError):
            time.sleep(0.2)
            continue
    return False


def _webview_start_options() -> dict[str, object]:
    options: dict[str, object] = {"debug": False}
    if os.name == "nt":
        # Edge runtime; the legacy engine lacks EventSource.
        options["gui"] = "edgechromium"
    return options
