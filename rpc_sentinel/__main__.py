from rpc_sentinel.cli import main

main()
