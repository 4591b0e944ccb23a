# telemetry.py
import os, sys, logging, warnings

APP_LOGGER = "contractlens"


def go_quiet(default_level="ERROR"):
    """
    Silence 3rd-party log spam while keeping:
      - the contractlens.* loggers
      - real warnings/errors
    Call as the FIRST thing in a runner, before importing the PDF stack.
    """
    # --- Environment flags to quiet libraries ---
    os.environ.setdefault("PYTHONUTF8", "1")
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")
    os.environ.setdefault("TQDM_DISABLE", "1")               # tqdm progress bars
    os.environ.setdefault("OMP_THREAD_LIMIT", "1")           # tesseract threads

    # --- Ensure stdout uses UTF-8 on Windows (prevents charmap noise) ---
    if sys.platform.startswith("win"):
        try:
            sys.stdout.reconfigure(encoding="utf-8")
            sys.stderr.reconfigure(encoding="utf-8")
        except (AttributeError, OSError):
            pass

    # --- Force global logging config ---
    # Keep root at ERROR by default (tunable via CL_LOG_LEVEL)
    lvl_name = os.getenv("CL_LOG_LEVEL", default_level).upper()
    lvl = getattr(logging, lvl_name, logging.ERROR)
    logging.basicConfig(
        level=lvl,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,  # override prior handlers from libs
    )

    # --- Silence noisy third-party loggers hard ---
    noisy = [
        # PDF stack
        "pdfminer", "pdfminer.six", "pdfminer.pdfpage", "pdfminer.pdfinterp",
        "pdfplumber",
        # imaging / OCR
        "PIL", "PIL.PngImagePlugin", "pytesseract", "fitz",
        # docx
        "docx",
    ]
    for name in noisy:
        lg = logging.getLogger(name)
        lg.setLevel(logging.CRITICAL)
        lg.propagate = False

    # Convert Python warnings -> logging, then silence by default
    logging.captureWarnings(True)
    warnings.simplefilter("ignore")

    # Keep the app logger chatty (only our messages)
    # (Use logger = logging.getLogger("contractlens.<area>") in library code)
    app_logger = logging.getLogger(APP_LOGGER)
    app_level = lvl if lvl < logging.INFO else logging.INFO
    app_logger.setLevel(app_level)
    app_logger.propagate = False
    if not app_logger.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setLevel(app_level)
        h.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        app_logger.addHandler(h)
    return app_logger
