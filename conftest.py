# Root conftest: make `src`, `config` and `tests` importable without installing
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
