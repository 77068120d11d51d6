"""
Entry point for python -m thirdeye
"""
if __name__ == "__main__":
    from .app import main
    main()
