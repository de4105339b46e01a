from __future__ import annotations

import pytest

from liveedit.files import InMemoryFileManager
from liveedit.server import DesignModeHandler, create_app

APP_SOURCE = """export default function App() {
  const status = task.completed;
  return (
    <main className="container mx-auto">
      <h1 id="hero-title" className="text-2xl text-gray-900">Welcome home</h1>
      <p className="subtitle text-gray-700">completed</p>
      <img id="hero-image" className="w-full" src="/hero.png" alt="Hero" />
    </main>
  );
}
"""


@pytest.fixture
def files():
    """A project with a single component."""
    return InMemoryFileManager({"src/App.tsx": APP_SOURCE})


@pytest.fixture
def handler(files):
    return DesignModeHandler(files)


@pytest.fixture
def app(handler):
    """Create a Flask app for testing."""
    application = create_app(handler=handler)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    """Create a Flask test client."""
    return app.test_client()

