from pdf2note.cli.main import main


main()
