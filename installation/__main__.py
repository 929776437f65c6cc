from installation.workflow import main

main()
