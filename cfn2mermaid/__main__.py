from cfn2mermaid.cli import main

main()
