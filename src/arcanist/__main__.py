from arcanist.cli.main import main

main()
