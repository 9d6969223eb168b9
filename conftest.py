# Keep the repository root on sys.path so `ocsubmit` and `modules` import
# no matter where pytest is launched from.
import os
import sys

root = os.path.dirname(os.path.abspath(__file__))
if root not in sys.path:
    sys.path.insert(0, root)
