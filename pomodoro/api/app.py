from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from .. import __version__
from ..settings import default_settings_path
from .routes.system import router as system_router
from .routes.timer import router as timer_router
from .timer_service import timer_service


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    timer_service.shutdown()


def create_app(settings_path: Path | None = None) -> FastAPI:
    resolved = Path(settings_path or default_settings_path())
    timer_service.configure(resolved)

    app = FastAPI(title="Pomodoro API", version=__version__, lifespan=_lifespan)

    app.include_router(system_router)
    app.include_router(timer_router)
    app.add_api_route("/", lambda: HTMLResponse(_screen_html()), methods=["GET"], include_in_schema=False)

    return app


def _screen_html() -> str:
    return """
<!doctype html>
<html lang="zh-CN">
  <head>
    <meta charset="utf-8" />
    <title>Pomodoro</title>
    <style>
      body { font-family: "Microsoft YaHei", sans-serif; margin: 0; background: #f6f8fb; color: #111827; }
      .card { max-width: 360px; margin: 3rem auto; background: white; border: 1px solid #e5e7eb; border-radius: 0.75rem; padding: 1.5rem; text-align: center; }
      #tomato { width: 96px; height: 96px; margin: 0 auto 1rem; border-radius: 50%; background: #e5484d; position: relative; }
      #tomato::after { content: ""; position: absolute; left: 44px; top: 4px; width: 8px; height: 20px; border-radius: 4px; background: #2f9e44; }
      #tomato.spin { animation: spin 1s linear; }
      @keyframes spin { from { transform: rotate(0deg); } to { transform: rotate(360deg); } }
      #display { font: bold 2.5rem Consolas, monospace; }
      progress { width: 100%; height: 0.75rem; margin-top: 0.5rem; }
      .picker input { width: 3.5rem; font-size: 1.1rem; text-align: center; }
      .actions { margin-top: 1.25rem; }
      .actions button { font-size: 1rem; padding: 0.4rem 1.2rem; margin: 0 0.3rem; }
      #status { margin-top: 0.75rem; color: #6b7280; min-height: 1.2rem; }
      .hidden { display: none; }
    </style>
  </head>
  <body>
    <div class="card">
      <div id="tomato"></div>
      <div id="picker" class="picker">
        <input id="h" type="number" min="0" max="23" value="0" /> 时
        <input id="m" type="number" min="0" max="59" value="1" /> 分
        <input id="s" type="number" min="0" max="59" value="0" /> 秒
      </div>
      <div id="info" class="hidden">
        <div id="display">00:00:00</div>
        <progress id="progress" max="1" value="1"></progress>
      </div>
      <div class="actions">
        <button id="cancel" disabled>取消</button>
        <button id="toggle">开始</button>
      </div>
      <div id="status"></div>
    </div>
    <script>
      const $ = (id) => document.getElementById(id);
      const api = (path, body) =>
        fetch("/api/v1/timer/" + path, {
          method: "POST",
          headers: { "Content-Type": "application/json" },
          body: body ? JSON.stringify(body) : undefined,
        }).then(async (resp) => {
          if (!resp.ok) {
            const err = await resp.json().catch(() => ({}));
            $("status").textContent = typeof err.detail === "string" ? err.detail : "请求失败";
          }
          return resp.ok;
        });

      function render(state, event) {
        const idle = state.status === "idle";
        $("picker").classList.toggle("hidden", !idle);
        $("info").classList.toggle("hidden", idle);
        $("toggle").textContent = state.status === "running" ? "暂停" : "开始";
        $("cancel").disabled = idle;
        $("display").textContent = state.display;
        $("progress").value = idle ? 1 : state.progress;
        if (idle) {
          const total = state.total_sec;
          $("h").value = Math.floor(total / 3600);
          $("m").value = Math.floor((total % 3600) / 60);
          $("s").value = total % 60;
        }
        if (event === "tick") {
          const t = $("tomato");
          t.classList.remove("spin");
          void t.offsetWidth;
          t.classList.add("spin");
        }
        if (event === "expire") $("status").textContent = "时间到！";
        else if (event === "cancel") $("status").textContent = "已取消";
        else if (event === "pause") $("status").textContent = "已暂停";
        else if (event === "session_start" || event === "resume") $("status").textContent = "倒计时进行中";
      }

      $("toggle").onclick = async () => {
        if (!$("picker").classList.contains("hidden")) {
          const seconds = (+$("h").value) * 3600 + (+$("m").value) * 60 + (+$("s").value);
          if (!(await api("duration", { seconds }))) return;
        }
        await api("toggle");
      };
      $("cancel").onclick = () => api("cancel");

      const stream = new EventSource("/api/v1/timer/stream");
      stream.onmessage = (msg) => {
        const data = JSON.parse(msg.data);
        render(data, data.event);
      };
    </script>
  </body>
</html>
"""
