from markdown_reference.main import main

main()
