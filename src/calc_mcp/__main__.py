from calc_mcp.main import main

main()
