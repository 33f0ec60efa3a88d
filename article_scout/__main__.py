from article_scout import main_cli

main_cli()
