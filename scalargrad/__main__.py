from scalargrad.train import main

main()
