"""Package entry point for ``python -m ssml_converter``.

WHY: Users run the converter as ``python -m ssml_converter notes.md``.
Python's ``-m`` flag looks for ``__main__.py`` inside the package and
executes it.

HOW: Delegates to the CLI's main() function.
"""

if __name__ == "__main__":
    from ssml_converter.cli import main
    main()
