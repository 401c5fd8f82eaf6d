from code2score.cli import main

main()
