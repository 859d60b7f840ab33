import os

# Fix for Numba TBB error: "Attempted to fork from a non-main thread"
os.environ["NUMBA_THREADING_LAYER"] = "workqueue"
import multiprocessing
import sys


if __name__ == "__main__":
    multiprocessing.freeze_support()

    from luptonpy.desktop.main import main

    main(sys.argv)
