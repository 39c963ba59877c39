"""Shared pytest fixtures for Qt application lifecycle."""

import os
import sys

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtCore import QCoreApplication
from PySide6.QtGui import QGuiApplication

from whiteboard import BoardModel, InteractionController, ViewTransform


@pytest.fixture(scope="session")
def app():
    """Provide a single QGuiApplication for all tests."""
    instance = QGuiApplication.instance()
    if instance is None:
        instance = QGuiApplication(sys.argv)

    yield instance

    QCoreApplication.processEvents()


@pytest.fixture
def empty_board(app):
    return BoardModel()


@pytest.fixture
def default_board(app):
    return BoardModel.with_default_board()


@pytest.fixture
def view(app):
    return ViewTransform()


@pytest.fixture
def controller(empty_board, view):
    return InteractionController(empty_board, view)
