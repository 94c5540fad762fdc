from src.console.cli import main

main()
