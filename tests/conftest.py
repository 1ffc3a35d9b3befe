import os
import sys

# Add project root to sys.path if not picked up by pythonpath
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
