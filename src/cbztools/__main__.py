from cbztools.cli.main_cli import main

main()
