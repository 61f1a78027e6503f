from scrambler.run import main

main()
