from smartserver.cli import main

main()
