from secret_controller.cli import main

main()
