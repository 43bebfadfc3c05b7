import sys
import pathlib

sys.path.append(str(pathlib.Path(__file__).absolute().parent.parent / "src"))
