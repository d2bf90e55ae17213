from onlinedb.run_etl import main

main()
