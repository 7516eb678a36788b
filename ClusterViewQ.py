import argparse
import sys

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import QApplication, QMainWindow

from clusterview.config import LayoutConfig, setup_logging
from clusterview.data_loader import load_graph
from clusterview.graph_model import build
from clusterview.layout_session import LayoutSession
from clusterview.layout_view import LayoutViewDock


class MainWin(QMainWindow):
    def __init__(self, session: LayoutSession):
        super().__init__()
        self.setWindowTitle("Cluster Layout")
        self.resize(1200, 800)
        self.session = session
        self.layout_dock = LayoutViewDock(self)
        self.addDockWidget(Qt.LeftDockWidgetArea, self.layout_dock)
        self.layout_dock.set_session(session)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Grouped, collapsible force-directed graph layout")
    parser.add_argument("graph", help="JSON document with 'nodes' and 'links'")
    parser.add_argument("--collapse", nargs="*", default=[], metavar="GROUP",
                        help="groups to start collapsed")
    parser.add_argument("--hull-margin", type=float, default=None)
    parser.add_argument("--debug", action="store_true")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.debug)

    nodes, links = load_graph(args.graph)
    model = build(nodes, links)
    config = LayoutConfig()
    if args.hull_margin is not None:
        config = config.replace(hull_margin=args.hull_margin)
    app = QApplication(sys.argv[:1])
    session = LayoutSession(model, config, {g: True for g in args.collapse})
    win = MainWin(session)
    win.show()
    return app.exec()


# ---------- main -----------------------------------------------------------
if __name__ == "__main__":
    sys.exit(main())
