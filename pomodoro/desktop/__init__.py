from .main import launch_desktop

__all__ = ["launch_desktop"]
