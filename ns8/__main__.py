from ns8.cli.app import main

main()
