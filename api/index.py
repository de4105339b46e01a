"""Serverless entry point for the live-edit backend."""
import sys
import os

# Add src to path so imports work
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from liveedit.config import LiveEditConfig
from liveedit.files import InMemoryFileManager
from liveedit.server import DesignModeHandler
from liveedit.server.app import create_app

project_root = os.environ.get("LIVEEDIT_PROJECT_ROOT")

if project_root:
    app = create_app(config=LiveEditConfig(project_root=project_root))
else:
    # Demo project held in memory so the deployment has something to edit
    files = InMemoryFileManager(
        {
            "src/App.tsx": (
                "export default function App() {\n"
                "  return (\n"
                '    <main className="container mx-auto p-8">\n'
                '      <h1 className="text-2xl text-gray-900">Welcome home</h1>\n'
                '      <img className="w-full" src="/hero.png" alt="Hero" />\n'
                "    </main>\n"
                "  );\n"
                "}\n"
            ),
        }
    )
    app = create_app(handler=DesignModeHandler(files))
