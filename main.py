from notion_mirror.cli import app

if __name__ == "__main__":
    app()
