from thingsdb_firebase.cli.main import main

main()
