from map_server.server import main

main()
