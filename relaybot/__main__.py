from relaybot.cli import main

main()
