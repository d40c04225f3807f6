import os

# Keep lookups of ak3s.yaml and plugins.yaml away from the developer's home
os.environ.setdefault("AK3S_HOME", "/nonexistent/ak3s-test-home")

from tests.fixtures import *  # noqa: F401,F403
