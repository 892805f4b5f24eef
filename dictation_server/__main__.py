"""Package entry point for ``python -m dictation_server``.

Delegates to the CLI's main() function.
"""

if __name__ == "__main__":
    from dictation_server.cli import main
    main()
