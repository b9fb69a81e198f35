import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt5.QtCore import QPointF
from PyQt5.QtWidgets import QApplication

from mathdiagrams import conf
from mathdiagrams.controller import InteractionController
from mathdiagrams.graph import DiagramGraph


def cell(column, row):
    return QPointF(column * conf.GRID_SIZE, row * conf.GRID_SIZE)


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def log():
    return []


@pytest.fixture
def graph(log):
    return DiagramGraph(log_func=log.append)


@pytest.fixture
def controller(graph, log):
    return InteractionController(graph, log_func=log.append)
