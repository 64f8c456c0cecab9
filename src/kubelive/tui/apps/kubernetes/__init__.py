"""Live Kubernetes resource browser TUI application.

Usage:
    from kubelive.tui.apps.kubernetes import KubeliveApp

    app = KubeliveApp(client=client)
    app.run()
"""

from kubelive.tui.apps.kubernetes.app import KubeliveApp

__all__ = ["KubeliveApp"]
